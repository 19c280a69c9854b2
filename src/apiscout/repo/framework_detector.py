from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.domain.models import DetectionResult
from apiscout.domain.report import ScanReport
from apiscout.repo.scanner import walk

logger = logging.getLogger(__name__)


def detect(
    root: Path,
    config: ScannerConfig = DEFAULT_CONFIG,
) -> DetectionResult:
    """
    Classify the repository at `root`.

    Marker files are checked at the root only, one framework at a time in table
    order; the first hit wins. Without a marker, files are counted per language by
    extension and the most frequent language is returned with framework "unknown".
    Ties go to the language seen first during the (sorted) walk.
    """
    root = Path(root)

    for fw in config.frameworks:
        for marker in fw.markers:
            if (root / marker).exists():
                logger.info("Detected framework %s (%s) via %s", fw.name, fw.language, marker)
                return DetectionResult(language=fw.language, framework=fw.name, marker=marker)

    language = _vote_language(root, config)
    logger.info("No framework marker found; language by extension: %s", language)
    return DetectionResult(language=language, framework="unknown")


def _vote_language(root: Path, config: ScannerConfig) -> str:
    by_ext: dict[str, list[str]] = {}
    for lang, exts in config.language_extensions.items():
        for ext in exts:
            by_ext.setdefault(ext.lower(), []).append(lang)

    # the extractor walks the same tree again; its walk is the one that reports skips
    vote_report = ScanReport()
    files = walk(
        root,
        by_ext.keys(),
        ignore_dirs=config.ignore_dirs,
        max_files=config.max_files,
        report=vote_report,
    )
    if vote_report.issue_count:
        logger.debug("Language vote saw %d skipped entries", vote_report.issue_count)

    counts: Counter[str] = Counter()
    for f in files:
        ext = Path(f).suffix.lower()
        for lang in by_ext.get(ext, ()):
            counts[lang] += 1

    if not counts:
        return "unknown"
    # most_common keeps insertion order among equal counts
    return counts.most_common(1)[0][0]
