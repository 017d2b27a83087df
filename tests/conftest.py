import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
RULES_PATH = ROOT / "rules.yaml"

# The app reads its rules path from the environment; pin it to the project file
# before anything caches Settings.
os.environ.setdefault("CRM_RULES_PATH", str(RULES_PATH))

from servicecrm.adapters.memory import InMemoryRecordStore  # noqa: E402
from servicecrm.domain.policy import AccessPolicy  # noqa: E402
from servicecrm.rules.loader import load_rules  # noqa: E402
from servicecrm.rules.models import Rules  # noqa: E402


class FixedClock:
    """Deterministic clock; `now` is timezone-aware in the reporting zone."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    def now_local(self) -> datetime:
        return self._now

    def now_utc(self) -> datetime:
        return self._now.astimezone(UTC)

    def set_now(self, now: datetime) -> None:
        self._now = now

    def advance(self, seconds: int) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def rules() -> Rules:
    return load_rules(RULES_PATH)


@pytest.fixture
def policy(rules: Rules) -> AccessPolicy:
    return AccessPolicy(rules.access)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def make_clock() -> type[FixedClock]:
    return FixedClock


@pytest.fixture
def clock() -> FixedClock:
    """Mid-March 2024, UTC."""
    return FixedClock(datetime(2024, 3, 15, 14, 30, 0, tzinfo=UTC))
