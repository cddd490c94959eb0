from datetime import datetime, timedelta, timezone

from ..core.ports import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SteppingClock(Clock):
    """
    Deterministic clock: every read advances by `step`, starting one step
    after `start` (the UNIX epoch by default).
    """

    def __init__(
        self,
        start: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ):
        self.current = start
        self.step = step

    def now(self) -> datetime:
        self.current += self.step
        return self.current


class FrozenClock(Clock):
    """Always returns the same instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
