"""
Pytest configuration for the Alara test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- A temporary project with a small TSX component and stylesheet
- A fake scheduler for client timers
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

# Must be set before alara.logging_config configures the logger on import
os.environ.setdefault("ALARA_MACHINE_MODE", "1")

from alara.logging_config import setup_logging


@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    setup_logging(level="DEBUG", suppress_console=True)


# ============================================================================
# PROJECT FIXTURES
# ============================================================================

SIMPLE_TSX = """export function App() {
  return (
    <div className="container">
      <h1 className="title">Hello World</h1>
      <p>Some text</p>
      <img src="logo.png" />
    </div>
  );
}
"""

SIMPLE_CSS = """.container {
  display: flex;
  padding: 16px;
}

.title {
  color: #ff0000;
  font-size: 24px;
}

@media (max-width: 600px) {
  .title {
    font-size: 18px;
  }
}
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    tmp = Path(tempfile.mkdtemp(prefix="alara_test_"))
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_project(temp_dir):
    """
    A project with src/App.tsx and src/App.css.

    Positions in App.tsx: <div> at 3:5, <h1> at 4:7, <p> at 5:7, <img> at 6:7.
    """
    src = temp_dir / "src"
    src.mkdir()
    (src / "App.tsx").write_text(SIMPLE_TSX, encoding="utf-8")
    (src / "App.css").write_text(SIMPLE_CSS, encoding="utf-8")
    yield temp_dir


@pytest.fixture
def engine(temp_project):
    from alara.mutation import MutationEngine

    return MutationEngine(temp_project)


# ============================================================================
# CLIENT HELPERS
# ============================================================================

class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Records scheduled callbacks; tests fire them explicitly."""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def delays(self):
        return [timer.delay for timer in self.timers]

    @property
    def active(self):
        return [timer for timer in self.timers if not (timer.cancelled or timer.fired)]

    def run_next(self):
        timer = self.active[0]
        timer.fired = True
        timer.callback()

    def run_all(self):
        while self.active:
            self.run_next()


@pytest.fixture
def scheduler():
    return FakeScheduler()
