"""
Per-request temporary workspaces holding a shallow clone of the target repository.

Use `workspace()` rather than pairing `acquire`/`release` by hand; it releases on
every exit path, including a consumer closing a generator early.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import urlparse

from apiscout.config import DEFAULT_CONFIG, ScannerConfig
from apiscout.errors import CleanupFailed, CloneFailed, InvalidInput

logger = logging.getLogger(__name__)

_WORKSPACE_PREFIX = "repo-"


def validate_repo_url(repo_url: object, allowed_schemes: tuple[str, ...]) -> str:
    if not isinstance(repo_url, str) or not repo_url.strip():
        raise InvalidInput("Repository URL is required")

    url = repo_url.strip()
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if not scheme or scheme not in allowed_schemes:
        allowed = ", ".join(allowed_schemes) or "none"
        raise InvalidInput(f"Unsupported repository URL scheme {scheme or '(none)'!r}; allowed: {allowed}")
    if scheme != "file" and not parsed.netloc:
        raise InvalidInput("Repository URL has no host")
    if scheme == "file" and not parsed.path:
        raise InvalidInput("Repository URL has no path")
    return url


def acquire(repo_url: str, config: ScannerConfig = DEFAULT_CONFIG) -> Path:
    """
    Create a fresh workspace directory and shallow-clone `repo_url` into it.

    Raises InvalidInput for a bad URL and CloneFailed when the clone does not
    complete. Whenever the clone does not complete, including on interruption,
    the directory is already removed.
    """
    url = validate_repo_url(repo_url, config.allowed_schemes)

    base = Path(config.workspace_root) if config.workspace_root else Path(tempfile.gettempdir())
    path = base / f"{_WORKSPACE_PREFIX}{uuid.uuid4().hex}"

    try:
        if path.exists():
            logger.debug("Removing stale workspace %s", path)
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as exc:
        raise CloneFailed(f"Failed to prepare workspace: {exc.strerror or exc}") from exc

    logger.info("Cloning %s", url)
    try:
        _run_git(
            ["clone", "--depth", "1", "--single-branch", "--quiet", "--", url, str(path)],
            timeout=config.clone_timeout,
        )
    except subprocess.CalledProcessError as exc:
        release(path)
        detail = _redact((exc.stderr or "").strip(), path) or f"git exited with status {exc.returncode}"
        raise CloneFailed(f"Failed to clone repository: {detail}") from exc
    except subprocess.TimeoutExpired as exc:
        release(path)
        raise CloneFailed(f"Failed to clone repository: timed out after {config.clone_timeout:g}s") from exc
    except OSError as exc:
        # git binary missing or not executable
        release(path)
        raise CloneFailed(f"Failed to clone repository: {exc.strerror or exc}") from exc
    except Exception as exc:
        release(path)
        detail = _redact(str(exc), path) or type(exc).__name__
        raise CloneFailed(f"Failed to clone repository: {detail}") from exc
    except BaseException:
        # interrupted (Ctrl-C, client abort): clean up and let it propagate
        release(path)
        raise

    logger.debug("Cloned into %s", path)
    return path


def release(path: Path) -> None:
    """Delete a workspace. Never raises; failures are logged as CleanupFailed."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        err = CleanupFailed(f"Failed to remove workspace: {exc.strerror or exc}")
        logger.error("%s: %s", err.kind, err.message)
        return
    logger.debug("Removed workspace %s", path)


@contextmanager
def workspace(repo_url: str, config: ScannerConfig = DEFAULT_CONFIG) -> Iterator[Path]:
    path = acquire(repo_url, config)
    try:
        yield path
    finally:
        release(path)


def _run_git(args: list[str], timeout: float) -> subprocess.CompletedProcess:
    # Separate helper so tests can stand in for the network
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    return subprocess.run(
        ["git", *args],
        check=True,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )


def _redact(text: str, path: Path) -> str:
    return text.replace(str(path), "<workspace>")
