from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Protocol

from apiscout.config import ScannerConfig
from apiscout.domain.models import RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.extractors.java import spring
from apiscout.extractors.javascript import express
from apiscout.extractors.python import django, flask
from apiscout.extractors.ruby import rails

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    def __call__(
        self,
        root: Path,
        extensions: Iterable[str],
        *,
        config: ScannerConfig = ...,
        report: Optional[ScanReport] = ...,
    ) -> Iterator[RouteRecord]: ...


EXTRACTORS: Mapping[str, Extractor] = MappingProxyType(
    {
        "express": express.extract,
        "flask": flask.extract,
        "django": django.extract,
        "spring": spring.extract,
        "rails": rails.extract,
    }
)

# unknown or unsupported frameworks go through the syntax-tree extractor
DEFAULT_FRAMEWORK = "express"


def select_extractor(framework: str) -> Extractor:
    extractor = EXTRACTORS.get(framework)
    if extractor is None:
        logger.info("No extractor for framework %r; falling back to %s", framework, DEFAULT_FRAMEWORK)
        return EXTRACTORS[DEFAULT_FRAMEWORK]
    return extractor
