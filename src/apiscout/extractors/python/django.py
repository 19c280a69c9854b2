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

URLCONF_FILENAME = "urls.py"

_URL_RE = re.compile(
    r"""(?<![\w.])(?:re_path|path|url)\(\s*r?(['"])(?P<path>.*?)\1\s*,\s*(?P<view>[\w.]+(?:\([^)]*\))?)"""
)


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
    files = [f for f in files if Path(f).name == URLCONF_FILENAME]

    def process(source: str, rel_path: str) -> list[RouteRecord]:
        return extract_routes_from_source(source, file_path=rel_path)

    yield from iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report)


def extract_routes_from_source(source: str, *, file_path: str = "") -> list[RouteRecord]:
    """
    Scan a Django URLconf for path()/re_path()/url() entries.

    URLconfs do not say which verbs a view accepts, so every entry is reported
    as GET. That is a known loss of information, not a guess.
    """
    routes: list[RouteRecord] = []
    for i, raw in enumerate(source.splitlines()):
        line = raw.strip()
        if line.startswith("#"):
            continue
        for m in _URL_RE.finditer(line):
            path = m.group("path")
            view = m.group("view").strip()
            routes.append(
                RouteRecord(
                    method="GET",
                    route_path=path,
                    handler=normalize(f"# View: {view}", "python"),
                    file_path=file_path,
                    line=i + 1,
                )
            )
            logger.debug("django: GET %s -> %s (%s:%d)", path, view, file_path, i + 1)
    return routes
