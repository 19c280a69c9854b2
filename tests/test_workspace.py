from pathlib import Path
import shutil
import subprocess
import textwrap

import pytest

from apiscout.config import ScannerConfig
from apiscout.errors import CloneFailed, InvalidInput
from apiscout.orchestrator import pipeline
from apiscout.orchestrator.pipeline import scan_repository
from apiscout.repo import workspace as workspace_mod
from apiscout.repo.workspace import acquire, release, validate_repo_url, workspace


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


def fake_clone(files: dict[str, str]):
    def _run(args, timeout):
        dest = Path(args[-1])
        for rel, text in files.items():
            write(dest / rel, text)
        return subprocess.CompletedProcess(args, 0)

    return _run


def leftovers(base: Path) -> list[Path]:
    return sorted(base.glob("repo-*"))


EXPRESS_REPO = {
    "package.json": "{}",
    "index.js": 'app.get("/health", (req, res) => res.send("ok"));\napp.post("/items", create);\n',
}


@pytest.mark.parametrize("url", [None, "", "   ", "git@github.com:o/r.git", "http://example.com/r.git", "https://"])
def test_validate_rejects_unsupported_urls(url):
    with pytest.raises(InvalidInput):
        validate_repo_url(url, ("https",))


def test_validate_accepts_https():
    assert validate_repo_url(" https://github.com/o/r ", ("https",)) == "https://github.com/o/r"


def test_acquire_and_release(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(workspace_mod, "_run_git", fake_clone({"README.md": "hi"}))
    cfg = ScannerConfig(workspace_root=tmp_path)

    path = acquire("https://example.com/o/r.git", cfg)
    assert path.parent == tmp_path
    assert path.name.startswith("repo-")
    assert (path / "README.md").read_text(encoding="utf-8") == "hi"

    release(path)
    assert not path.exists()
    release(path)  # already gone: no error


def test_acquire_uses_unique_directories(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(workspace_mod, "_run_git", fake_clone({}))
    cfg = ScannerConfig(workspace_root=tmp_path)

    with workspace("https://example.com/a", cfg) as a, workspace("https://example.com/a", cfg) as b:
        assert a != b
    assert leftovers(tmp_path) == []


def test_clone_failure_cleans_up_and_hides_workspace_path(tmp_path: Path, monkeypatch):
    def failing(args, timeout):
        raise subprocess.CalledProcessError(128, args, stderr=f"fatal: could not write to '{args[-1]}'\n")

    monkeypatch.setattr(workspace_mod, "_run_git", failing)
    cfg = ScannerConfig(workspace_root=tmp_path)

    with pytest.raises(CloneFailed) as info:
        acquire("https://example.com/o/r.git", cfg)

    assert "<workspace>" in info.value.message
    assert str(tmp_path) not in info.value.message
    assert info.value.to_dict()["kind"] == "clone_failed"
    assert leftovers(tmp_path) == []


def test_clone_timeout_is_clone_failed(tmp_path: Path, monkeypatch):
    def slow(args, timeout):
        raise subprocess.TimeoutExpired(args, timeout)

    monkeypatch.setattr(workspace_mod, "_run_git", slow)
    with pytest.raises(CloneFailed):
        acquire("https://example.com/o/r.git", ScannerConfig(workspace_root=tmp_path, clone_timeout=1))
    assert leftovers(tmp_path) == []


def test_unexpected_clone_error_is_clone_failed_and_cleans_up(tmp_path: Path, monkeypatch):
    def garbled(args, timeout):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    monkeypatch.setattr(workspace_mod, "_run_git", garbled)
    with pytest.raises(CloneFailed):
        acquire("https://example.com/o/r.git", ScannerConfig(workspace_root=tmp_path))
    assert leftovers(tmp_path) == []


def test_interrupted_clone_cleans_up_and_propagates(tmp_path: Path, monkeypatch):
    def interrupted(args, timeout):
        raise KeyboardInterrupt

    monkeypatch.setattr(workspace_mod, "_run_git", interrupted)
    with pytest.raises(KeyboardInterrupt):
        acquire("https://example.com/o/r.git", ScannerConfig(workspace_root=tmp_path))
    assert leftovers(tmp_path) == []


def test_release_failure_is_logged_not_raised(tmp_path: Path, monkeypatch, caplog):
    target = tmp_path / "repo-x"
    target.mkdir()

    def boom(path):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(workspace_mod.shutil, "rmtree", boom)
    release(target)
    assert "cleanup_failed" in caplog.text


def test_scan_repository_removes_workspace_on_success(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(workspace_mod, "_run_git", fake_clone(EXPRESS_REPO))
    cfg = ScannerConfig(workspace_root=tmp_path)

    routes = list(scan_repository("https://example.com/o/r.git", cfg))
    assert [(r.method, r.route_path) for r in routes] == [("GET", "/health"), ("POST", "/items")]
    assert leftovers(tmp_path) == []


def test_scan_repository_removes_workspace_when_extraction_fails(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(workspace_mod, "_run_git", fake_clone(EXPRESS_REPO))
    seen: list[Path] = []

    def exploding(root, config, report):
        seen.append(root)
        yield from ()
        raise RuntimeError("extractor crashed")

    monkeypatch.setattr(pipeline, "extract_routes", exploding)
    cfg = ScannerConfig(workspace_root=tmp_path)

    with pytest.raises(RuntimeError):
        list(scan_repository("https://example.com/o/r.git", cfg))
    assert seen and not seen[0].exists()
    assert leftovers(tmp_path) == []


def test_scan_repository_removes_workspace_when_abandoned(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(workspace_mod, "_run_git", fake_clone(EXPRESS_REPO))
    cfg = ScannerConfig(workspace_root=tmp_path)

    stream = scan_repository("https://example.com/o/r.git", cfg)
    first = next(stream)
    assert first.route_path == "/health"
    assert len(leftovers(tmp_path)) == 1

    stream.close()
    assert leftovers(tmp_path) == []


def test_scan_repository_invalid_url_creates_nothing(tmp_path: Path):
    cfg = ScannerConfig(workspace_root=tmp_path)
    with pytest.raises(InvalidInput):
        list(scan_repository("ftp://example.com/r", cfg))
    assert leftovers(tmp_path) == []


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_shallow_clone_of_local_repository(tmp_path: Path):
    origin = tmp_path / "origin"
    write(origin / "app.py", "@app.route('/ping')\ndef ping():\n    return 'pong'\n")
    write(origin / "requirements.txt", "flask\n")
    git = ["git", "-c", "user.name=t", "-c", "user.email=t@example.com", "-c", "init.defaultBranch=main", "-c", "commit.gpgsign=false"]
    subprocess.run([*git, "init", "-q", str(origin)], check=True)
    subprocess.run([*git, "-C", str(origin), "add", "."], check=True)
    subprocess.run([*git, "-C", str(origin), "commit", "-q", "-m", "init"], check=True)

    base = tmp_path / "work"
    base.mkdir()
    cfg = ScannerConfig(workspace_root=base, allowed_schemes=("file",))

    routes = list(scan_repository(origin.as_uri(), cfg))
    assert [(r.method, r.route_path) for r in routes] == [("GET", "/ping")]
    assert leftovers(base) == []
