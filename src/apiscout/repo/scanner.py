from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from apiscout.config import DEFAULT_CONFIG
from apiscout.domain.report import ScanReport
from apiscout.repo.ignore import should_ignore_dir

logger = logging.getLogger(__name__)


def walk(
    root: Path,
    extensions: Iterable[str],
    *,
    ignore_dirs: Iterable[str] = DEFAULT_CONFIG.ignore_dirs,
    max_files: Optional[int] = None,
    report: Optional[ScanReport] = None,
) -> list[str]:
    """
    Return absolute paths (as strings) of files under `root` whose name ends with
    one of `extensions`, matched case-insensitively.

    Deterministic for a static tree: entries are visited in sorted order.
    Unreadable directories are logged, recorded on `report` and skipped.
    """
    root = Path(root).resolve()
    suffixes = tuple(e.lower() for e in extensions)
    ignored = frozenset(ignore_dirs)
    out: list[str] = []

    if not suffixes:
        return out

    def on_error(exc: OSError) -> None:
        rel = _relative(exc.filename, root)
        if report is not None:
            report.skip(rel, f"unreadable directory ({exc.strerror or exc})")
        else:
            logger.warning("Skipped unreadable directory %s: %s", rel, exc.strerror or exc)

    for dirpath, dirs, files in _walk(root, on_error):
        dir_p = Path(dirpath)

        # prune ignored dirs; sort in place so os.walk descends deterministically
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(dir_p / d, ignored))

        for name in sorted(files):
            if not name.lower().endswith(suffixes):
                continue
            full = dir_p / name
            if full.is_symlink() and not _inside(full, root):
                logger.debug("Ignoring symlink leaving the tree: %s", _relative(full, root))
                continue
            if max_files is not None and len(out) >= max_files:
                # only reported once a match beyond the limit actually exists
                msg = f"file limit of {max_files} reached, remaining files not scanned"
                if report is not None:
                    report.skip(".", msg)
                else:
                    logger.warning(msg)
                return out
            out.append(str(full))
    return out


def _walk(root: Path, on_error):
    # Separate helper to make unit testing easier (can be mocked)
    return os.walk(root, onerror=on_error, followlinks=False)


def _inside(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root)
    except (OSError, ValueError):
        return False
    return True


def _relative(path: object, root: Path) -> str:
    if path is None:
        return "."
    try:
        return Path(os.fspath(path)).relative_to(root).as_posix() or "."
    except ValueError:
        return Path(os.fspath(path)).name


def relative_path(path: str, root: Path) -> str:
    """Repo-relative POSIX path, used for logs and provenance (never the workspace path)."""
    return _relative(path, Path(root).resolve())


def read_source(path: str, max_bytes: int) -> str:
    """
    Read a source file as text. Files larger than `max_bytes` are refused with
    ValueError; undecodable bytes are dropped.
    """
    size = os.path.getsize(path)
    if size > max_bytes:
        raise ValueError(f"file too large ({size} bytes > {max_bytes})")
    with open(path, "rb") as f:
        data = f.read()
    return data.decode("utf-8", errors="ignore")
