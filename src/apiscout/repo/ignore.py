from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from apiscout.config import DEFAULT_IGNORE_DIRS


def should_ignore_dir(dir_path: Path, ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS) -> bool:
    return dir_path.name in ignore_dirs
