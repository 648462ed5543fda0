"""Per-draft pick clocks that publish timer updates and fire auto-picks."""
import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional
from database.models import utc_now, ensure_utc
from services.draft_events import TimerUpdate
from services.draft_notifier import DraftNotifier

# (draft_id, overall pick number) -> True if the expiry was handled
ExpiryHandler = Callable[[int, int], Awaitable[bool]]

class DraftClock:
    """One cancellable timer task per draft in progress.

    A clock is armed for a specific overall pick number. When its
    deadline passes it calls the expiry handler, which goes through the
    same serialized pick path as a human submission. Arming again or
    cancelling stops the previous task.
    """

    def __init__(
        self,
        notifier: DraftNotifier,
        on_expire: ExpiryHandler,
        update_interval: float = 5,
        retry_seconds: float = 5,
        auto_pick_enabled: bool = True,
        now: Callable[[], datetime] = utc_now
    ):
        self.notifier = notifier
        self.on_expire = on_expire
        self.update_interval = update_interval
        self.retry_seconds = retry_seconds
        self.auto_pick_enabled = auto_pick_enabled
        self._now = now
        self._tasks: Dict[int, asyncio.Task] = {}
        self.logger = logging.getLogger(__name__)

    def arm(self, draft_id: int, pick_number: int, deadline: datetime) -> None:
        """Start (or restart) the clock for a pick."""
        self.cancel(draft_id)
        self._tasks[draft_id] = asyncio.get_running_loop().create_task(
            self._run(draft_id, pick_number, ensure_utc(deadline)),
            name=f"draft-clock-{draft_id}-{pick_number}"
        )
        self.logger.debug(
            f"Clock armed for pick {pick_number} until {deadline.isoformat()}",
            extra={'draft_id': draft_id}
        )

    def cancel(self, draft_id: int) -> None:
        task = self._tasks.pop(draft_id, None)
        # The expiry handler re-arms from inside the running clock task;
        # that task finishes on its own once the handler returns.
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            self.logger.debug("Clock cancelled", extra={'draft_id': draft_id})

    def is_armed(self, draft_id: int) -> bool:
        task = self._tasks.get(draft_id)
        return task is not None and not task.done()

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def seconds_remaining(self, deadline: Optional[datetime]) -> int:
        if deadline is None:
            return 0
        remaining = (ensure_utc(deadline) - self._now()).total_seconds()
        return max(0, math.ceil(remaining))

    async def _run(self, draft_id: int, pick_number: int, deadline: datetime) -> None:
        try:
            while True:
                remaining = self.seconds_remaining(deadline)
                self.notifier.publish(
                    draft_id,
                    TimerUpdate(draft_id=draft_id, seconds_remaining=remaining)
                )
                if remaining <= 0:
                    break
                await asyncio.sleep(min(self.update_interval, remaining))

            if not self.auto_pick_enabled:
                self.logger.info(
                    f"Pick {pick_number} clock expired; auto-pick disabled",
                    extra={'draft_id': draft_id}
                )
                return

            while True:
                try:
                    handled = await self.on_expire(draft_id, pick_number)
                except Exception as exc:
                    self.logger.warning(
                        f"Auto-pick for pick {pick_number} failed, retrying in "
                        f"{self.retry_seconds}s: {exc}",
                        extra={'draft_id': draft_id}
                    )
                    await asyncio.sleep(self.retry_seconds)
                    continue
                if not handled:
                    self.logger.debug(
                        f"Pick {pick_number} expiry ignored; draft moved on",
                        extra={'draft_id': draft_id}
                    )
                return
        finally:
            if self._tasks.get(draft_id) is asyncio.current_task():
                self._tasks.pop(draft_id, None)

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.logger.info(f"Stopped {len(tasks)} draft clocks")
