from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from tree_sitter import Node

from apiscout.config import DEFAULT_CONFIG, RouterFactory, ScannerConfig
from apiscout.domain.models import RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.extractors.base import iter_file_results
from apiscout.extractors.javascript import syntax
from apiscout.extractors.normalize import normalize
from apiscout.repo.scanner import walk

logger = logging.getLogger(__name__)

_HTTP_METHOD_ATTRS = {
    "get": "GET",
    "post": "POST",
    "put": "PUT",
    "patch": "PATCH",
    "delete": "DELETE",
}


def extract(
    root: Path,
    extensions: Iterable[str],
    *,
    config: ScannerConfig = DEFAULT_CONFIG,
    report: Optional[ScanReport] = None,
) -> Iterator[RouteRecord]:
    files = walk(
        root,
        extensions,
        ignore_dirs=config.ignore_dirs,
        max_files=config.max_files,
        report=report,
    )
    # only the JS family has a grammar; anything else is not ours to parse
    files = [f for f in files if syntax.supports(f)]

    def process(source: str, rel_path: str) -> list[RouteRecord]:
        return extract_routes_from_source(
            source,
            suffix=Path(rel_path).suffix,
            file_path=rel_path,
            app_identifiers=config.app_identifiers,
            router_factories=config.router_factories,
        )

    yield from iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report)


def extract_routes_from_source(
    source: str,
    *,
    suffix: str = ".js",
    file_path: str = "",
    app_identifiers: Iterable[str] = DEFAULT_CONFIG.app_identifiers,
    router_factories: Iterable[RouterFactory] = DEFAULT_CONFIG.router_factories,
) -> list[RouteRecord]:
    """
    Extract Express-style routes declared as calls like:
      app.get("/path", handler)
      router.post("/path", auth, handler)   # router = express.Router()

    Raises SourceParseError when the source does not parse.
    """
    data = source.encode("utf-8")
    tree = syntax.parse_source(data, suffix)

    receivers = set(app_identifiers) | _router_aliases(tree, router_factories)

    routes: list[RouteRecord] = []
    for node in syntax.iter_nodes(tree):
        if node.type != "call_expression":
            continue
        maybe = _parse_route_call(node, receivers)
        if maybe is None:
            continue

        method, path = maybe
        raw = data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
        line = node.start_point[0] + 1
        routes.append(
            RouteRecord(
                method=method,
                route_path=path,
                handler=normalize(raw, "javascript"),
                file_path=file_path,
                line=line,
            )
        )
        logger.debug("express: %s %s (%s:%d)", method, path, file_path, line)
    return routes


def _router_aliases(tree: Node, factories: Iterable[RouterFactory]) -> set[str]:
    """Names bound by `const <name> = <namespace>.<factory>()`."""
    wanted = {(f.namespace, f.attr) for f in factories}
    out: set[str] = set()
    for node in syntax.iter_nodes(tree):
        if node.type != "variable_declarator":
            continue
        name = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name is None or name.type != "identifier":
            continue
        if value is None or value.type != "call_expression":
            continue
        parts = syntax.member_parts(value.child_by_field_name("function"))
        if parts is None:
            continue
        obj, prop = parts
        if obj.type == "identifier" and (syntax.text_of(obj), syntax.text_of(prop)) in wanted:
            out.add(syntax.text_of(name))
    return out


def _parse_route_call(call: Node, receivers: set[str]) -> Optional[tuple[str, str]]:
    """(METHOD, path) for `<receiver>.<verb>("<path>", <handler>, ...)`, else None."""
    parts = syntax.member_parts(call.child_by_field_name("function"))
    if parts is None:
        return None
    obj, prop = parts
    if obj.type != "identifier" or syntax.text_of(obj) not in receivers:
        return None
    if prop.type != "property_identifier":
        return None
    method = _HTTP_METHOD_ATTRS.get(syntax.text_of(prop))
    if method is None:
        return None

    args = syntax.arguments_of(call)
    if args is None or len(args) < 2:
        return None
    path = syntax.string_value(args[0])
    if path is None:
        return None
    return method, path
