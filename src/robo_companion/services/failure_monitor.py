from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from robo_companion.core.config import settings
from robo_companion.upstream.base.adapter import UpstreamAdapter
from robo_companion.upstream.base.keys import FailureInfo

logger = logging.getLogger(__name__)


class FailureMonitor:
    """
    Periodically checks the current adapter's failure state and notifies once per failure.

    `adapter_source` is called on every tick so program switches are picked up.
    """

    def __init__(
        self,
        adapter_source: Callable[[], UpstreamAdapter],
        on_notify: Callable[[FailureInfo], Any],
        *,
        interval_s: float | None = None,
    ) -> None:
        self._adapter_source = adapter_source
        self._on_notify = on_notify
        if interval_s is None:
            interval_s = settings.failure_check_interval_s
        self.interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> FailureInfo:
        adapter = self._adapter_source()
        info = adapter.get_failure_info()
        if info.in_failure and info.should_show_notification:
            logger.warning("Upstream %s is in failure state", adapter.family)
            result = self._on_notify(info)
            if asyncio.iscoroutine(result):
                await result
            adapter.mark_notification_shown()
        return info

    async def _run(self) -> None:
        while True:
            try:
                await self.check_once()
            except Exception:
                logger.exception("Failure-state check failed")
            await asyncio.sleep(self.interval_s)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> FailureMonitor:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
