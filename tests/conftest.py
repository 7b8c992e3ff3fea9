from __future__ import annotations

from typing import List

import pytest

from pumpfun_launcher.errors import StatusSourceError
from pumpfun_launcher.vanity import VanityStatus


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedSource:
    """Replays statuses in order; an Exception instance is raised instead."""

    def __init__(self, script, repeat_last: bool = False) -> None:
        self.script = list(script)
        self.repeat_last = repeat_last
        self.calls = 0

    def fetch_status(self, request):
        self.calls += 1
        if self.script and (len(self.script) > 1 or not self.repeat_last):
            item = self.script.pop(0)
        elif self.script:
            item = self.script[0]
        else:
            raise AssertionError("status source polled more times than scripted")
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pending() -> VanityStatus:
    return VanityStatus.pending()


@pytest.fixture
def unreachable() -> StatusSourceError:
    return StatusSourceError("Status source unreachable: connection refused")
