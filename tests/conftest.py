from __future__ import annotations

import datetime
import pathlib

import pytest

from blogcms import store


class TickingClock:
    """A deterministic clock which moves forward by a fixed step on every read."""

    def __init__(
        self,
        start: datetime.datetime = datetime.datetime(
            2024, 1, 1, tzinfo=datetime.timezone.utc
        ),
        step: datetime.timedelta = datetime.timedelta(seconds=1),
    ):
        self.current = start
        self.step = step

    def __call__(self) -> datetime.datetime:
        now = self.current
        self.current += self.step
        return now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def database(tmp_path: pathlib.Path) -> str:
    return str(tmp_path / "cms.db")


@pytest.fixture
def post_store(database, clock) -> store.PostStore:
    with store.PostStore(database, clock=clock) as s:
        yield s
