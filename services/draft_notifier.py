"""Publish draft events to observers in order."""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional
from services.draft_events import DraftEvent

logger = logging.getLogger(__name__)

class DraftObserver(ABC):
    """Abstract interface for anything that receives draft events."""

    @abstractmethod
    async def deliver(self, event: DraftEvent) -> None:
        """Deliver one event. Raising marks this delivery as failed."""
        pass

    @property
    def name(self) -> str:
        return type(self).__name__

class Subscription:
    """An observer attached to one draft (or to all drafts).

    Each subscription drains its own queue in a dedicated task, so a slow
    observer never holds up the publisher or other observers, and events
    reach it in publication order.
    """

    def __init__(self, observer: DraftObserver, draft_id: Optional[int]):
        self.observer = observer
        self.draft_id = draft_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.failures = 0
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while True:
            event = await self.queue.get()
            try:
                await self.observer.deliver(event)
            except Exception as exc:
                self.failures += 1
                logger.warning(
                    f"Failed to deliver {event.event_type} to {self.observer.name}: {exc}",
                    extra={'draft_id': event.draft_id}
                )
            finally:
                self.queue.task_done()

    def push(self, event: DraftEvent) -> None:
        self.queue.put_nowait(event)

    async def drain(self) -> None:
        await self.queue.join()

    def cancel(self) -> None:
        self._task.cancel()

class DraftNotifier:
    """Fan out draft events to subscribed observers.

    `publish` only enqueues, so it returns before any delivery happens and
    never raises because of an observer.
    """

    def __init__(self):
        self._subscriptions: Dict[int, List[Subscription]] = defaultdict(list)
        self._global: List[Subscription] = []
        self.logger = logging.getLogger(__name__)

    def subscribe(self, draft_id: int, observer: DraftObserver) -> Subscription:
        """Attach an observer to one draft's event stream."""
        subscription = Subscription(observer, draft_id)
        self._subscriptions[draft_id].append(subscription)
        self.logger.debug(
            f"{observer.name} subscribed",
            extra={'draft_id': draft_id}
        )
        return subscription

    def subscribe_all(self, observer: DraftObserver) -> Subscription:
        """Attach an observer to every draft's event stream."""
        subscription = Subscription(observer, None)
        self._global.append(subscription)
        self.logger.debug(f"{observer.name} subscribed to all drafts")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription.draft_id is None:
            if subscription in self._global:
                self._global.remove(subscription)
        else:
            subscribers = self._subscriptions.get(subscription.draft_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscriptions.pop(subscription.draft_id, None)
        subscription.cancel()

    def publish(self, draft_id: int, event: DraftEvent) -> None:
        """Queue an event for every current observer of the draft."""
        subscribers = list(self._subscriptions.get(draft_id, [])) + list(self._global)
        for subscription in subscribers:
            subscription.push(event)
        self.logger.debug(
            f"Published {event.event_type} to {len(subscribers)} observers",
            extra={'draft_id': draft_id}
        )

    def observer_count(self, draft_id: Optional[int] = None) -> int:
        if draft_id is None:
            total = sum(len(subs) for subs in self._subscriptions.values())
            return total + len(self._global)
        return len(self._subscriptions.get(draft_id, []))

    async def drain(self) -> None:
        """Wait until every queued event has been delivered."""
        subscribers = [s for subs in self._subscriptions.values() for s in subs] + self._global
        for subscription in subscribers:
            await subscription.drain()

    async def close(self) -> None:
        for subs in list(self._subscriptions.values()):
            for subscription in subs:
                subscription.cancel()
        for subscription in self._global:
            subscription.cancel()
        self._subscriptions.clear()
        self._global.clear()
        self.logger.info("Draft notifier closed")
