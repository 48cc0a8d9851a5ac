"""
Shared fixtures.

Puts src/ on sys.path so the tests run without installing the package, and
keeps the user's own config file out of every test.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from filewatch import config as config_module  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "no-such-config.toml")
    monkeypatch.setattr(config_module, "_config", None)


@pytest.fixture
def watched(tmp_path):
    path = tmp_path / "settings.conf"
    path.write_bytes(b"A")
    return path


class StepClock:
    """Fake wall clock advancing one millisecond per call."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 9, 12, 30, 45, 123000, tzinfo=timezone.utc)
        self.step = timedelta(milliseconds=1)

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return StepClock()
