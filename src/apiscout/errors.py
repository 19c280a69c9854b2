from __future__ import annotations

from typing import Optional


class ApiScoutError(Exception):
    """
    Base of the closed failure taxonomy.

    Only `kind` and `message` cross the library boundary; callers decide how to
    present them.
    """

    kind = "apiscout_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InvalidInput(ApiScoutError):
    kind = "invalid_input"


class CloneFailed(ApiScoutError):
    kind = "clone_failed"


class ScanPartial(ApiScoutError):
    """A file or directory that could not be read or parsed. Recorded, never raised."""

    kind = "scan_partial"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path

    def to_dict(self) -> dict[str, str]:
        out = super().to_dict()
        if self.path is not None:
            out["path"] = self.path
        return out


class CleanupFailed(ApiScoutError):
    kind = "cleanup_failed"


class SourceParseError(ValueError):
    """Raised by the syntax layer when a file does not parse cleanly."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line
