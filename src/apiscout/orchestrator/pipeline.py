from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.domain.models import DeclarationSet, DetectionResult, RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.extractors.dispatch import select_extractor
from apiscout.extractors.javascript.declarations import extract_declarations
from apiscout.repo.framework_detector import detect
from apiscout.repo.workspace import workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzeResult:
    detection: DetectionResult
    routes: list[RouteRecord]
    report: ScanReport = field(default_factory=ScanReport)


def extract_routes(
    root: Path,
    config: ScannerConfig = DEFAULT_CONFIG,
    report: Optional[ScanReport] = None,
    detection: Optional[DetectionResult] = None,
) -> Iterator[RouteRecord]:
    """
    Lazily yield the routes of the repository checked out at `root`.
    Detection runs first unless a result is passed in.
    """
    root = Path(root).resolve()
    if detection is None:
        detection = detect(root, config)

    extensions = config.extensions_for(detection.language)
    extractor = select_extractor(detection.framework)
    logger.info(
        "Extracting routes: framework=%s language=%s extensions=%s",
        detection.framework,
        detection.language,
        ",".join(extensions),
    )

    for route in extractor(root, extensions, config=config, report=report):
        if report is not None:
            report.routes_found += 1
        yield route


def run_analyze(root: Path, config: ScannerConfig = DEFAULT_CONFIG) -> AnalyzeResult:
    """Detect and extract eagerly over a local directory."""
    report = ScanReport()
    root = Path(root).resolve()
    detection = detect(root, config)
    routes = list(extract_routes(root, config, report, detection=detection))
    return AnalyzeResult(detection=detection, routes=routes, report=report)


def scan_repository(
    repo_url: str,
    config: ScannerConfig = DEFAULT_CONFIG,
    report: Optional[ScanReport] = None,
) -> Iterator[RouteRecord]:
    """
    Clone `repo_url` into a private workspace and yield its routes one by one.

    The workspace is removed when the iterator is exhausted, raises, or is closed
    by the consumer. InvalidInput / CloneFailed surface on the first next().
    """
    with workspace(repo_url, config) as root:
        yield from extract_routes(root, config, report)


def scan_declarations(
    repo_url: str,
    config: ScannerConfig = DEFAULT_CONFIG,
    report: Optional[ScanReport] = None,
) -> DeclarationSet:
    with workspace(repo_url, config) as root:
        return extract_declarations(root, config=config, report=report)
