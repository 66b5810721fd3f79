"""Production clock."""

from datetime import UTC, datetime

from capsync.gateway.time.abc import Time


class RealTime(Time):
    """Real clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(UTC)
