from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.domain.models import HTTP_METHODS, RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.extractors.base import iter_file_results
from apiscout.extractors.normalize import normalize
from apiscout.repo.scanner import walk

logger = logging.getLogger(__name__)

_ROUTE_RE = re.compile(r"""\.route\(\s*(['"])(?P<path>[^'"]+)\1(?P<rest>.*)""")
_METHODS_RE = re.compile(r"""methods\s*=\s*[\[\(](?P<items>[^\]\)]*)[\]\)]""")
_QUOTED_RE = re.compile(r"""['"](\w+)['"]""")
_DEF_RE = re.compile(r"^(?:async\s+)?def\s")


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

    def process(source: str, rel_path: str) -> list[RouteRecord]:
        return extract_routes_from_source(source, file_path=rel_path, prefixes=config.flask_route_prefixes)

    yield from iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report)


def extract_routes_from_source(
    source: str,
    *,
    file_path: str = "",
    prefixes: tuple[str, ...] = DEFAULT_CONFIG.flask_route_prefixes,
) -> list[RouteRecord]:
    """
    Line scan for Flask-style decorators:
      @app.route('/items', methods=['GET', 'POST'])
    One record per listed method; GET when no methods are given.
    """
    lines = source.splitlines()
    routes: list[RouteRecord] = []

    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line.startswith(prefixes):
            continue
        m = _ROUTE_RE.search(line)
        if m is None:
            continue

        path = m.group("path")
        methods = _parse_methods(m.group("rest"))
        if not methods:
            continue

        handler = normalize("\n".join(_collect_handler(lines, i + 1, prefixes)), "python")
        for method in methods:
            routes.append(
                RouteRecord(method=method, route_path=path, handler=handler, file_path=file_path, line=i + 1)
            )
            logger.debug("flask: %s %s (%s:%d)", method, path, file_path, i + 1)
    return routes


def _parse_methods(rest: str) -> list[str]:
    m = _METHODS_RE.search(rest)
    if m is None:
        return ["GET"]
    out: list[str] = []
    for name in _QUOTED_RE.findall(m.group("items")):
        method = name.upper()
        if method not in HTTP_METHODS:
            logger.debug("flask: ignoring method %s", method)
            continue
        if method not in out:
            out.append(method)
    return out


def _collect_handler(lines: list[str], start: int, prefixes: tuple[str, ...]) -> list[str]:
    """
    Lines after a route decorator: other decorators, then the def line and its
    indented block. Stacked route decorators are skipped, not included.
    """
    body: list[str] = []
    n = len(lines)
    j = start

    while j < n:
        stripped = lines[j].strip()
        if _DEF_RE.match(stripped):
            break
        if not stripped.startswith(prefixes):
            body.append(lines[j])
        j += 1

    if j >= n:
        return _rstrip_blank(body)

    def_line = lines[j]
    body.append(def_line)
    indent = _indent_of(def_line)
    j += 1
    while j < n and (not lines[j].strip() or _indent_of(lines[j]) > indent):
        body.append(lines[j])
        j += 1
    return _rstrip_blank(body)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _rstrip_blank(lines: list[str]) -> list[str]:
    while lines and not lines[-1].strip():
        lines.pop()
    return lines
