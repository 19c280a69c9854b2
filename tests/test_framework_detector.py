from pathlib import Path

from apiscout.config import ScannerConfig
from apiscout.domain.models import DetectionResult
from apiscout.repo.framework_detector import detect


def touch(p: Path) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("", encoding="utf-8")


def test_detect_empty_directory(tmp_path: Path):
    result = detect(tmp_path)
    assert result.language == "unknown"
    assert result.framework == "unknown"
    assert result.marker is None


def test_detect_by_marker(tmp_path: Path):
    touch(tmp_path / "manage.py")
    assert detect(tmp_path) == DetectionResult(language="python", framework="django", marker="manage.py")


def test_detect_nested_marker_path(tmp_path: Path):
    touch(tmp_path / "config" / "routes.rb")
    result = detect(tmp_path)
    assert (result.language, result.framework) == ("ruby", "rails")


def test_detect_table_order_breaks_ties(tmp_path: Path):
    # both express and flask markers present; express comes first in the table
    touch(tmp_path / "requirements.txt")
    touch(tmp_path / "package.json")
    assert detect(tmp_path).framework == "express"


def test_detect_markers_only_at_root(tmp_path: Path):
    touch(tmp_path / "sub" / "pom.xml")
    touch(tmp_path / "sub" / "Main.java")
    result = detect(tmp_path)
    assert result.framework == "unknown"
    assert result.language == "java"


def test_detect_falls_back_to_extension_vote(tmp_path: Path):
    touch(tmp_path / "src" / "a.py")
    touch(tmp_path / "src" / "b.py")
    touch(tmp_path / "src" / "c.js")
    assert detect(tmp_path) == DetectionResult(language="python", framework="unknown")


def test_detect_vote_tie_goes_to_first_seen(tmp_path: Path):
    touch(tmp_path / "a" / "x.rb")
    touch(tmp_path / "b" / "Y.java")
    assert detect(tmp_path).language == "ruby"


def test_detect_is_deterministic(tmp_path: Path):
    touch(tmp_path / "one.ts")
    touch(tmp_path / "two.py")
    touch(tmp_path / "three.rb")
    assert detect(tmp_path) == detect(tmp_path)


def test_detect_uses_configured_table(tmp_path: Path):
    touch(tmp_path / "Gemfile")
    config = ScannerConfig(frameworks=())
    touch(tmp_path / "app.rb")
    assert detect(tmp_path, config) == DetectionResult(language="ruby", framework="unknown")
