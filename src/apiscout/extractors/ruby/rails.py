from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Optional

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.domain.models import RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.extractors.base import iter_file_results
from apiscout.extractors.normalize import normalize
from apiscout.repo.scanner import walk

logger = logging.getLogger(__name__)

ROUTES_FILENAME = "routes.rb"
UNKNOWN_TARGET = "unknown#action"

_VERB_RE = re.compile(r"""^(get|post|put|patch|delete)(?:\s+|\s*\(\s*)(['"])(?P<path>[^'"]+)\2(?P<rest>.*)""")
_TARGET_RE = re.compile(r"""(?:\bto:\s*|:to\s*=>\s*|=>\s*)(['"])(?P<target>[^'"]+)\1""")


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
    files = [f for f in files if Path(f).name == ROUTES_FILENAME]

    def process(source: str, rel_path: str) -> list[RouteRecord]:
        return extract_routes_from_source(source, file_path=rel_path)

    yield from iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report)


def extract_routes_from_source(source: str, *, file_path: str = "") -> list[RouteRecord]:
    """
    Scan config/routes.rb for verb calls:
      get 'users/:id', to: 'users#show'
      post 'login' => 'sessions#create'
    Controller code lives elsewhere, so the handler is a placeholder naming the target.
    """
    routes: list[RouteRecord] = []
    for i, raw in enumerate(source.splitlines()):
        m = _VERB_RE.match(raw.strip())
        if m is None:
            continue
        method = m.group(1).upper()
        path = m.group("path")
        t = _TARGET_RE.search(m.group("rest"))
        target = t.group("target") if t else UNKNOWN_TARGET

        routes.append(
            RouteRecord(
                method=method,
                route_path=path,
                handler=normalize(f"# Controller: {target}", "ruby"),
                file_path=file_path,
                line=i + 1,
            )
        )
        logger.debug("rails: %s %s -> %s (%s:%d)", method, path, target, file_path, i + 1)
    return routes
