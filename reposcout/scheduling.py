"""Periodic invocation of discovery runs.

``PeriodicTaskRunner`` plays the scheduler role for a provider: it invokes a
task on a fixed cadence, abandons an invocation once the timeout elapses, and
refuses to start a second invocation while one is still in flight. Because a
provider commits only at the very end of a run, an abandoned run leaves the
inventory untouched.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import datetime as dt
import typing as typ

from reposcout.logging import get_logger, log_error, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from reposcout.logging import SupportsLog

logger = get_logger(__name__)

type Task = cabc.Callable[[], cabc.Awaitable[object]]


@dataclasses.dataclass(frozen=True, slots=True)
class ScheduleDefinition:
    """Cadence and per-invocation timeout for a recurring task."""

    frequency: dt.timedelta = dt.timedelta(minutes=60)
    timeout: dt.timedelta = dt.timedelta(minutes=50)

    def __post_init__(self) -> None:
        """Reject non-positive durations."""
        for name in ("frequency", "timeout"):
            value = getattr(self, name)
            if value <= dt.timedelta(0):
                msg = f"schedule {name} must be positive, got: {value}"
                raise ValueError(msg)


class PeriodicTaskRunner:
    """Run a task periodically with timeout and overlap suppression."""

    def __init__(
        self,
        schedule: ScheduleDefinition | None = None,
        *,
        name: str = "task",
        event_logger: SupportsLog | None = None,
    ) -> None:
        """Configure the runner with a schedule and a name used in logs."""
        self.schedule = schedule or ScheduleDefinition()
        self.name = name
        self._logger = event_logger or logger
        self._in_flight = asyncio.Lock()
        self._background: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return True while an invocation is in flight."""
        return self._in_flight.locked()

    async def run_once(self, task: Task) -> bool:
        """Invoke ``task`` once unless another invocation is in flight.

        Returns
        -------
        bool
            ``False`` when the invocation was suppressed because a previous
            one has not finished, ``True`` once the task completed.

        Raises
        ------
        TimeoutError
            If the task exceeds the schedule timeout; the task is cancelled.

        """
        if self._in_flight.locked():
            log_warning(
                self._logger,
                "Skipping %s: previous run still in progress",
                self.name,
            )
            return False

        async with self._in_flight:
            async with asyncio.timeout(self.schedule.timeout.total_seconds()):
                await task()
        return True

    async def run_forever(self, task: Task) -> None:
        """Invoke ``task`` every ``frequency`` until cancelled.

        Failures of individual invocations are logged and do not stop the
        loop; the next invocation starts on the regular cadence.
        """
        while True:
            try:
                await self.run_once(task)
            except TimeoutError as exc:
                log_error(
                    self._logger,
                    "%s timed out after %.0f seconds",
                    self.name,
                    self.schedule.timeout.total_seconds(),
                    exc_info=exc,
                )
            except Exception as exc:  # noqa: BLE001 - keep the schedule alive
                log_error(self._logger, "%s failed: %s", self.name, exc, exc_info=exc)
            await asyncio.sleep(self.schedule.frequency.total_seconds())

    def as_schedule_fn(self, task: Task) -> cabc.Callable[[], cabc.Awaitable[None]]:
        """Adapt the runner to a provider's ``schedule`` hook.

        The returned callable starts :meth:`run_forever` as a background
        task and returns immediately.
        """

        async def _schedule() -> None:
            self._background = asyncio.create_task(self.run_forever(task))

        return _schedule

    async def stop(self) -> None:
        """Cancel a background loop started via :meth:`as_schedule_fn`."""
        if self._background is None:
            return
        self._background.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._background
        self._background = None
