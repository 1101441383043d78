"""Fixtures for CLI tests: coverage files on disk and a clean environment."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

LCOV = "SF:src/app.py\nDA:1,1\nDA:2,1\nDA:3,1\nDA:4,0\nend_of_record\n"

COBERTURA = """\
<?xml version="1.0" ?>
<coverage line-rate="0.5" branch-rate="0" timestamp="1">
  <packages><package name="lib"><classes>
    <class name="util.py" filename="lib/util.py">
      <lines><line number="1" hits="1"/><line number="2" hits="0"/></lines>
    </class>
  </classes></package></packages>
</coverage>
"""

JUNIT = """\
<testsuites>
  <testsuite name="unit" tests="2" failures="1">
    <testcase classname="app" name="test_ok"/>
    <testcase classname="app" name="test_bad"><failure message="boom"/></testcase>
  </testsuite>
</testsuites>
"""

DIFF = """\
diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,2 +1,4 @@
 a
 b
+c
+d
"""


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run each command from an empty directory with no covgate env vars."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_WORKSPACE", raising=False)
    for name in ("COVGATE__FAIL_FAST", "COVGATE__STATUS__PROJECT__TARGET"):
        monkeypatch.delenv(name, raising=False)
    yield
    # The CLI points logging at the runner's captured stderr
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def lcov_file(tmp_path: Path) -> Path:
    path = tmp_path / "lcov.info"
    path.write_text(LCOV)
    return path


@pytest.fixture
def cobertura_file(tmp_path: Path) -> Path:
    path = tmp_path / "coverage.xml"
    path.write_text(COBERTURA)
    return path


@pytest.fixture
def junk_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text("not coverage\n")
    return path


@pytest.fixture
def diff_file(tmp_path: Path) -> Path:
    path = tmp_path / "change.diff"
    path.write_text(DIFF)
    return path


@pytest.fixture
def junit_file(tmp_path: Path) -> Path:
    path = tmp_path / "junit.xml"
    path.write_text(JUNIT)
    return path
