from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = (
    "All API keys have been rate-limited or are unavailable. Some features may be "
    "temporarily limited. This will reset automatically when you restart the app, or "
    "keys may recover within an hour."
)


async def _async_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@dataclass
class RequestPacer:
    """Keeps a minimum spacing between consecutive upstream requests."""

    min_interval_s: float = 0.1
    last_request_monotonic: float | None = None

    _sleep: Callable[[float], Awaitable[Any]] = field(default=_async_sleep, repr=False)
    _monotonic: Callable[[], float] = field(default=time.monotonic, repr=False)

    async def before_request(self) -> None:
        if self.min_interval_s > 0.0 and self.last_request_monotonic is not None:
            elapsed = float(self._monotonic()) - self.last_request_monotonic
            remaining = self.min_interval_s - elapsed
            if remaining > 0:
                logger.debug("Pacing: waiting %.3fs before request", remaining)
                await self._sleep(remaining)
        self.last_request_monotonic = float(self._monotonic())


@dataclass(frozen=True)
class KeyStatus:
    total: int
    active: int
    failed: int
    current: int


@dataclass
class ApiKeyPool:
    """
    Rotating pool of API keys.

    - Rotates to the next key every `calls_before_rotation` calls to spread load.
    - Keys marked failed are skipped; the failed set is forgotten after `reset_after_s`.
    - When every key has failed, the pool starts another cycle. A cycle that ends with
      zero successful calls counts as a failed cycle; after `max_failed_cycles`
      consecutive failed cycles `next_key()` returns None (pool exhausted).
    """

    name: str
    keys: list[str]
    calls_before_rotation: int = 20
    reset_after_s: float = 3600.0
    max_failed_cycles: int = 2

    current_index: int = 0
    failed: set[int] = field(default_factory=set)
    usage_count: int = 0
    calls_since_rotation: int = 0
    successes_in_cycle: int = 0
    cycles: int = 0
    consecutive_failed_cycles: int = 0
    last_reset_monotonic: float | None = None

    _monotonic: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __len__(self) -> int:
        return len(self.keys)

    @property
    def all_failed(self) -> bool:
        return bool(self.keys) and len(self.failed) >= len(self.keys)

    def _maybe_reset(self) -> None:
        now = float(self._monotonic())
        if self.last_reset_monotonic is None:
            self.last_reset_monotonic = now
            return
        if now - self.last_reset_monotonic > self.reset_after_s:
            logger.debug("[%s] Resetting failed keys and cycle tracking", self.name)
            self.failed.clear()
            self.last_reset_monotonic = now
            self.cycles = 0
            self.successes_in_cycle = 0
            self.consecutive_failed_cycles = 0

    def _take(self) -> str:
        self.usage_count += 1
        self.calls_since_rotation += 1
        return self.keys[self.current_index]

    def next_key(self) -> str | None:
        if not self.keys:
            return None

        self._maybe_reset()

        if self.calls_since_rotation >= self.calls_before_rotation and len(self.keys) > 1:
            self.current_index = (self.current_index + 1) % len(self.keys)
            self.calls_since_rotation = 0
            logger.debug("[%s] Rotated to key #%d", self.name, self.current_index + 1)

        for _ in range(len(self.keys)):
            if self.current_index not in self.failed:
                return self._take()
            self.current_index = (self.current_index + 1) % len(self.keys)

        # Every key failed in this cycle.
        self.cycles += 1
        if self.successes_in_cycle == 0:
            self.consecutive_failed_cycles += 1
            logger.warning(
                "[%s] Cycle %d ended with 0 successful calls (consecutive failed cycles: %d)",
                self.name,
                self.cycles,
                self.consecutive_failed_cycles,
            )
        else:
            self.consecutive_failed_cycles = 0

        exhausted = self.consecutive_failed_cycles >= self.max_failed_cycles

        self.failed.clear()
        self.current_index = 0
        self.successes_in_cycle = 0

        if exhausted:
            self.cycles = 0
            self.consecutive_failed_cycles = 0
            return None

        return self._take()

    def mark_failed(self) -> None:
        if not self.keys:
            return
        logger.warning("[%s] Marking key #%d as failed", self.name, self.current_index + 1)
        self.failed.add(self.current_index)
        self.current_index = (self.current_index + 1) % len(self.keys)

    def record_success(self) -> None:
        self.successes_in_cycle += 1

    def reset(self) -> None:
        self.failed.clear()
        self.current_index = 0
        self.cycles = 0
        self.successes_in_cycle = 0
        self.consecutive_failed_cycles = 0
        self.calls_since_rotation = 0

    def status(self) -> KeyStatus:
        return KeyStatus(
            total=len(self.keys),
            active=len(self.keys) - len(self.failed),
            failed=len(self.failed),
            current=self.current_index + 1,
        )


@dataclass(frozen=True)
class FailureInfo:
    in_failure: bool
    should_show_notification: bool
    message: str = ""
    timestamp: float | None = None


@dataclass
class FailureTracker:
    """Temporary "all keys exhausted" state of one adapter, plus the one-time notice flag."""

    failed_at: float | None = None
    notification_shown: bool = False

    _clock: Callable[[], float] = field(default=time.time, repr=False)

    def trip(self) -> None:
        if self.failed_at is None:
            self.failed_at = float(self._clock())
            logger.error("All API keys have failed; entering limited mode until reset")

    @property
    def in_failure(self) -> bool:
        return self.failed_at is not None

    def info(self) -> FailureInfo:
        if not self.in_failure:
            return FailureInfo(in_failure=False, should_show_notification=False)
        return FailureInfo(
            in_failure=True,
            should_show_notification=not self.notification_shown,
            message=FAILURE_MESSAGE,
            timestamp=self.failed_at,
        )

    def mark_notification_shown(self) -> None:
        self.notification_shown = True

    def reset(self) -> None:
        self.failed_at = None
        self.notification_shown = False
