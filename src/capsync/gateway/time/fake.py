"""Fake clock for deterministic timestamps in tests."""

from datetime import UTC, datetime, timedelta

from capsync.gateway.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2024, 1, 15, 14, 30, 0, tzinfo=UTC)


class FakeTime(Time):
    """Clock that returns a fixed instant until advanced.

    Constructor Injection:
        current_time: Instant returned by now() (defaults to DEFAULT_FAKE_NOW)

    Mutation Tracking:
        now_calls: Number of times now() was called
    """

    def __init__(self, current_time: datetime | None = None) -> None:
        self._current_time = current_time if current_time is not None else DEFAULT_FAKE_NOW
        self._now_calls = 0

    def now(self) -> datetime:
        self._now_calls += 1
        return self._current_time

    def advance(self, *, seconds: float) -> None:
        """Move the clock forward."""
        self._current_time = self._current_time + timedelta(seconds=seconds)

    @property
    def now_calls(self) -> int:
        return self._now_calls
