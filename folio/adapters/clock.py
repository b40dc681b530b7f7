from datetime import UTC, datetime


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to one instant. Used by tests and replay tooling."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now or datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now
