from __future__ import annotations

import logging
from dataclasses import dataclass, field

from apiscout.errors import ScanPartial

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """
    Mutable tally for one request. Non-fatal problems land in `issues`
    instead of being raised.
    """

    files_scanned: int = 0
    routes_found: int = 0
    issues: list[ScanPartial] = field(default_factory=list)

    def skip(self, path: str, reason: str) -> None:
        issue = ScanPartial(reason, path=path)
        self.issues.append(issue)
        logger.warning("Skipped %s: %s", path, reason)

    @property
    def issue_count(self) -> int:
        return len(self.issues)
