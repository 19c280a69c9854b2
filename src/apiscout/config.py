"""
Scanner configuration.

Tables here (framework markers, extensions, ignores) are process-wide and
treated as read-only once loaded.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from apiscout.errors import InvalidInput


class FrameworkMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    language: str
    markers: tuple[str, ...]


class RouterFactory(BaseModel):
    """`<namespace>.<attr>()` calls whose result is a router, e.g. express.Router()."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    attr: str


DEFAULT_FRAMEWORKS: tuple[FrameworkMarker, ...] = (
    FrameworkMarker(name="express", language="javascript", markers=("package.json",)),
    FrameworkMarker(name="flask", language="python", markers=("requirements.txt", "app.py")),
    FrameworkMarker(name="django", language="python", markers=("manage.py", "settings.py")),
    FrameworkMarker(name="spring", language="java", markers=("pom.xml", "build.gradle")),
    FrameworkMarker(name="rails", language="ruby", markers=("Gemfile", "config/routes.rb")),
)

DEFAULT_LANGUAGE_EXTENSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "javascript": (".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs"),
        "python": (".py",),
        "java": (".java",),
        "ruby": (".rb",),
    }
)

DEFAULT_IGNORE_DIRS: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    ".mypy_cache",
    ".ruff_cache",
    ".pytest_cache",
)


class ScannerConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    frameworks: tuple[FrameworkMarker, ...] = DEFAULT_FRAMEWORKS
    language_extensions: Mapping[str, tuple[str, ...]] = Field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_LANGUAGE_EXTENSIONS))
    )
    ignore_dirs: tuple[str, ...] = DEFAULT_IGNORE_DIRS

    max_files: int = Field(10_000, gt=0)
    max_file_bytes: int = Field(1_000_000, gt=0)

    allowed_schemes: tuple[str, ...] = ("https",)
    clone_timeout: float = Field(300.0, gt=0)
    workspace_root: Optional[Path] = None

    app_identifiers: tuple[str, ...] = ("app",)
    router_factories: tuple[RouterFactory, ...] = (RouterFactory(namespace="express", attr="Router"),)
    orm_namespaces: tuple[str, ...] = ("mongoose", "sequelize", "prisma")
    flask_route_prefixes: tuple[str, ...] = ("@app.route(", "@blueprint.route(", "@bp.route(")

    @field_validator("language_extensions")
    @classmethod
    def freeze_extensions(cls, value: Mapping[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
        return MappingProxyType(dict(value))

    def extensions_for(self, language: str) -> tuple[str, ...]:
        """Extensions to scan for `language`; every tracked extension when it is unknown."""
        exts = self.language_extensions.get(language)
        if exts:
            return exts
        out: list[str] = []
        for group in self.language_extensions.values():
            for ext in group:
                if ext not in out:
                    out.append(ext)
        return tuple(out)


DEFAULT_CONFIG = ScannerConfig()


def load_config(path: Union[str, Path, None] = None) -> ScannerConfig:
    """
    Load configuration from a YAML file, or return the defaults when no path is given.
    Keys missing from the file keep their default value.
    """
    if path is None:
        return DEFAULT_CONFIG

    cfg_path = Path(path).expanduser()
    try:
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise InvalidInput(f"Cannot read config file {cfg_path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise InvalidInput(f"Config file {cfg_path} is not valid YAML: {exc}") from exc

    if raw is None:
        return DEFAULT_CONFIG
    if not isinstance(raw, dict):
        raise InvalidInput(f"Config file {cfg_path} must contain a mapping at the top level")

    try:
        return ScannerConfig.model_validate(raw)
    except ValidationError as exc:
        raise InvalidInput(f"Invalid config in {cfg_path}: {exc}") from exc
