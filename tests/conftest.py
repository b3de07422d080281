import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import load_default_prompt
from config import registry


class FakeClock:
    """Manually advanced clock for elapsed-time driven behaviour."""

    def __init__(self) -> None:
        self.current = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.current += timedelta(minutes=minutes, seconds=seconds)


@pytest.fixture(autouse=True)
def clean_registry(monkeypatch):
    monkeypatch.setattr(registry, "_REGISTRY", {})
    yield


@pytest.fixture
def prompt():
    return load_default_prompt()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def problem():
    return {"title": "Two Sum", "description": "Find two numbers adding up to target.", "difficulty": "easy"}


@pytest.fixture
def code():
    return {"language": "python", "text": "def two_sum(nums, target):\n    seen = {}\n"}
