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

_MAPPING_METHODS = {
    "@RequestMapping": "GET",
    "@GetMapping": "GET",
    "@PostMapping": "POST",
    "@PutMapping": "PUT",
    "@DeleteMapping": "DELETE",
    "@PatchMapping": "PATCH",
}

_MAPPING_RE = re.compile(r"^(@(?:Request|Get|Post|Put|Delete|Patch)Mapping)\b")
_NAMED_PATH_RE = re.compile(r"""\b(?:value|path)\s*=\s*\{?\s*"([^"]*)\"""")
_POSITIONAL_PATH_RE = re.compile(r"""^\s*\(\s*\{?\s*"([^"]*)\"""")
_REQUEST_METHOD_RE = re.compile(r"\bRequestMethod\.(GET|POST|PUT|PATCH|DELETE)\b")
_CLASS_RE = re.compile(
    r"^(?:(?:public|protected|private|abstract|final|static|sealed)\s+)*(?:class|interface|enum|record)\s"
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

    def process(source: str, rel_path: str) -> list[RouteRecord]:
        return extract_routes_from_source(source, file_path=rel_path)

    yield from iter_file_results(files, Path(root), process, max_bytes=config.max_file_bytes, report=report)


def extract_routes_from_source(source: str, *, file_path: str = "") -> list[RouteRecord]:
    """
    Line scan for Spring mapping annotations:
      @GetMapping("/users")
      @RequestMapping(value = "/users", method = RequestMethod.POST)
    The handler runs from the annotation up to the next annotation or class declaration.
    """
    lines = source.splitlines()
    routes: list[RouteRecord] = []

    for i, raw in enumerate(lines):
        line = raw.strip()
        m = _MAPPING_RE.match(line)
        if m is None:
            continue

        annotation = m.group(1)
        method = _MAPPING_METHODS[annotation]
        args = line[m.end():]
        if annotation == "@RequestMapping":
            rm = _REQUEST_METHOD_RE.search(args)
            if rm is not None:
                method = rm.group(1)

        path = _parse_path(args)

        body = [line]
        j = i + 1
        while j < len(lines):
            nxt = lines[j].strip()
            if nxt.startswith("@") or _CLASS_RE.match(nxt):
                break
            body.append(lines[j])
            j += 1

        routes.append(
            RouteRecord(
                method=method,
                route_path=path,
                handler=normalize("\n".join(body).rstrip(), "java"),
                file_path=file_path,
                line=i + 1,
            )
        )
        logger.debug("spring: %s %s (%s:%d)", method, path, file_path, i + 1)
    return routes


def _parse_path(args: str) -> str:
    m = _NAMED_PATH_RE.search(args) or _POSITIONAL_PATH_RE.search(args)
    return m.group(1) if m else "/"
