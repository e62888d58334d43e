import time

from .errors import StageTimeout


class Deadline:
    """Wall-clock budget for one pipeline stage, checked cooperatively."""

    def __init__(self, stage: str, seconds: float, clock=time.monotonic):
        self.stage = stage
        self.seconds = seconds
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self) -> None:
        if self.expired():
            raise self.timeout()

    def timeout(self) -> StageTimeout:
        return StageTimeout(f"{self.stage} exceeded {self.seconds:g}s")
