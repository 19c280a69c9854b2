from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Optional, TypeVar

from apiscout.domain.report import ScanReport
from apiscout.repo.scanner import read_source, relative_path

logger = logging.getLogger(__name__)

T = TypeVar("T")


def iter_file_results(
    files: Iterable[str],
    root: Path,
    process: Callable[[str, str], Iterable[T]],
    *,
    max_bytes: int,
    report: Optional[ScanReport] = None,
) -> Iterator[T]:
    """
    Run `process(source, rel_path)` over each file, one file at a time.

    A file that cannot be read or processed is logged, recorded on `report` and
    skipped. Results of a file are collected in full before being yielded, so a
    failing file contributes nothing.
    """
    for path in files:
        rel = relative_path(path, root)
        try:
            source = read_source(path, max_bytes)
            results = list(process(source, rel))
        except Exception as exc:  # one bad file must not abort the scan
            reason = f"{type(exc).__name__}: {exc}"
            if report is not None:
                report.skip(rel, reason)
            else:
                logger.warning("Skipped %s: %s", rel, reason)
            continue

        if report is not None:
            report.files_scanned += 1
        yield from results
