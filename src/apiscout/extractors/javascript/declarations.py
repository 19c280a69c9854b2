"""
Declaration extraction for architecture diagrams.

Collects, across a JS/TS codebase:
  - data models:   mongoose.model("User", { name: String, age: Number })
  - controllers:   class UserController { list() {} create() {} }
  - types:         interface User { id: string }  /  type User = { id: string }
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from tree_sitter import Node

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.domain.models import ControllerDecl, DeclarationSet, ModelDecl, TypeDecl
from apiscout.domain.report import ScanReport
from apiscout.extractors.base import iter_file_results
from apiscout.extractors.javascript import syntax
from apiscout.repo.scanner import walk

logger = logging.getLogger(__name__)

Declaration = Union[ModelDecl, ControllerDecl, TypeDecl]

_CLASS_NODES = ("class_declaration", "abstract_class_declaration")


@dataclass
class DeclarationBuilder:
    models: list[ModelDecl] = field(default_factory=list)
    controllers: list[ControllerDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)

    def add(self, decl: Declaration) -> None:
        if isinstance(decl, ModelDecl):
            self.models.append(decl)
        elif isinstance(decl, ControllerDecl):
            self.controllers.append(decl)
        else:
            self.types.append(decl)

    def build(self) -> DeclarationSet:
        return DeclarationSet(
            models=tuple(self.models),
            controllers=tuple(self.controllers),
            types=tuple(self.types),
        )


def extract_declarations(
    root: Path,
    *,
    config: ScannerConfig = DEFAULT_CONFIG,
    report: Optional[ScanReport] = None,
) -> DeclarationSet:
    files = walk(
        root,
        config.extensions_for("javascript"),
        ignore_dirs=config.ignore_dirs,
        max_files=config.max_files,
        report=report,
    )
    files = [f for f in files if syntax.supports(f)]

    def process(source: str, rel_path: str) -> list[Declaration]:
        return declarations_from_source(
            source,
            suffix=Path(rel_path).suffix,
            orm_namespaces=config.orm_namespaces,
        )

    builder = DeclarationBuilder()
    for decl in iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report):
        builder.add(decl)

    result = builder.build()
    logger.info(
        "Declarations: %d models, %d controllers, %d types",
        len(result.models),
        len(result.controllers),
        len(result.types),
    )
    return result


def declarations_from_source(
    source: str,
    *,
    suffix: str = ".ts",
    orm_namespaces: tuple[str, ...] = DEFAULT_CONFIG.orm_namespaces,
) -> list[Declaration]:
    tree = syntax.parse_source(source.encode("utf-8"), suffix)
    out: list[Declaration] = []
    namespaces = set(orm_namespaces)

    for node in syntax.iter_nodes(tree):
        decl: Optional[Declaration] = None
        if node.type == "call_expression":
            decl = _model_decl(node, namespaces)
        elif node.type in _CLASS_NODES:
            decl = _controller_decl(node)
        elif node.type == "interface_declaration":
            decl = _interface_decl(node)
        elif node.type == "type_alias_declaration":
            decl = _type_alias_decl(node)
        if decl is not None:
            out.append(decl)
    return out


def _model_decl(call: Node, namespaces: set[str]) -> Optional[ModelDecl]:
    parts = syntax.member_parts(call.child_by_field_name("function"))
    if parts is None:
        return None
    obj, _ = parts
    if obj.type != "identifier" or syntax.text_of(obj) not in namespaces:
        return None

    args = syntax.arguments_of(call) or []
    name = syntax.string_value(args[0]) if args else None

    fields: list[str] = []
    if len(args) > 1 and args[1].type == "object":
        for prop in args[1].named_children:
            key = _object_key(prop)
            if key is not None:
                fields.append(key)

    return ModelDecl(name=name if name is not None else "Unknown", type=syntax.text_of(obj), fields=tuple(fields))


def _object_key(prop: Node) -> Optional[str]:
    # computed keys, methods and spreads are ignored
    if prop.type == "shorthand_property_identifier":
        return syntax.text_of(prop)
    if prop.type != "pair":
        return None
    key = prop.child_by_field_name("key")
    if key is None:
        return None
    if key.type == "property_identifier":
        return syntax.text_of(key)
    return syntax.string_value(key)


def _controller_decl(node: Node) -> Optional[ControllerDecl]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = syntax.text_of(name_node)
    if "controller" not in name.lower():
        return None

    methods: list[str] = []
    body = node.child_by_field_name("body")
    for member in body.named_children if body is not None else ():
        if member.type != "method_definition":
            continue
        key = member.child_by_field_name("name")
        if key is not None and key.type == "property_identifier":
            methods.append(syntax.text_of(key))
    return ControllerDecl(name=name, methods=tuple(methods))


def _interface_decl(node: Node) -> Optional[TypeDecl]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    return TypeDecl(name=syntax.text_of(name_node), properties=_signature_keys(node.child_by_field_name("body")))


def _type_alias_decl(node: Node) -> Optional[TypeDecl]:
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    # only object-literal shaped aliases describe a record
    if name_node is None or value is None or value.type != "object_type":
        return None
    return TypeDecl(name=syntax.text_of(name_node), properties=_signature_keys(value))


def _signature_keys(body: Optional[Node]) -> tuple[str, ...]:
    keys: list[str] = []
    for member in body.named_children if body is not None else ():
        if member.type != "property_signature":
            continue
        key = member.child_by_field_name("name")
        if key is None:
            continue
        if key.type == "property_identifier":
            keys.append(syntax.text_of(key))
        else:
            value = syntax.string_value(key)
            if value is not None:
                keys.append(value)
    return tuple(keys)
