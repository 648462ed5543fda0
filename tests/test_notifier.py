import asyncio
from datetime import datetime, timezone
from services.draft_events import DraftPaused, PickDetails, PickMade, TimerUpdate
from services.draft_notifier import DraftNotifier, DraftObserver
from tests.conftest import RecordingObserver

class FailingObserver(DraftObserver):
    async def deliver(self, event):
        raise ConnectionError("client went away")

class SlowObserver(RecordingObserver):
    async def deliver(self, event):
        await asyncio.sleep(0.05)
        await super().deliver(event)

def pick_event(draft_id, number):
    return PickMade(
        draft_id=draft_id,
        pick=PickDetails(id=number, round=1, overall_pick_number=number, team_id=1, player_id=100 + number),
        next_team_id=2,
        next_deadline=datetime(2026, 3, 1, tzinfo=timezone.utc),
        current_round=1,
        current_pick=number + 1
    )

class TestDraftNotifier:
    async def test_events_arrive_in_publication_order(self, notifier):
        observer = SlowObserver()
        notifier.subscribe(1, observer)
        for number in range(1, 6):
            notifier.publish(1, pick_event(1, number))
        await notifier.drain()
        assert [e.pick.overall_pick_number for e in observer.events] == [1, 2, 3, 4, 5]

    async def test_publish_does_not_wait_for_delivery(self, notifier):
        observer = SlowObserver()
        notifier.subscribe(1, observer)
        notifier.publish(1, TimerUpdate(draft_id=1, seconds_remaining=10))
        assert observer.events == []
        await notifier.drain()
        assert len(observer.events) == 1

    async def test_failing_observer_does_not_affect_others(self, notifier):
        failing = FailingObserver()
        healthy = RecordingObserver()
        failing_sub = notifier.subscribe(1, failing)
        notifier.subscribe(1, healthy)

        notifier.publish(1, pick_event(1, 1))
        notifier.publish(1, pick_event(1, 2))
        await notifier.drain()

        assert [e.pick.overall_pick_number for e in healthy.events] == [1, 2]
        assert failing_sub.failures == 2

    async def test_events_scoped_to_draft(self, notifier):
        first, second = RecordingObserver(), RecordingObserver()
        notifier.subscribe(1, first)
        notifier.subscribe(2, second)
        notifier.publish(1, DraftPaused(draft_id=1, reason="break"))
        await notifier.drain()
        assert len(first.events) == 1
        assert second.events == []

    async def test_subscribe_all_sees_every_draft(self, notifier):
        everything = RecordingObserver()
        notifier.subscribe_all(everything)
        notifier.publish(1, TimerUpdate(draft_id=1, seconds_remaining=3))
        notifier.publish(2, TimerUpdate(draft_id=2, seconds_remaining=3))
        await notifier.drain()
        assert [e.draft_id for e in everything.events] == [1, 2]

    async def test_unsubscribe(self, notifier):
        observer = RecordingObserver()
        subscription = notifier.subscribe(1, observer)
        assert notifier.observer_count(1) == 1
        notifier.unsubscribe(subscription)
        assert notifier.observer_count(1) == 0
        notifier.publish(1, TimerUpdate(draft_id=1, seconds_remaining=3))
        await notifier.drain()
        assert observer.events == []

    async def test_publish_without_observers(self, notifier):
        notifier.publish(5, TimerUpdate(draft_id=5, seconds_remaining=1))
        assert notifier.observer_count() == 0

    async def test_close_cancels_subscriptions(self):
        notifier = DraftNotifier()
        notifier.subscribe(1, RecordingObserver())
        notifier.subscribe_all(RecordingObserver())
        assert notifier.observer_count() == 2
        await notifier.close()
        assert notifier.observer_count() == 0

class TestEventWireFormat:
    def test_message_uses_event_name_and_camel_case(self):
        message = pick_event(3, 1).to_message()
        assert message["type"] == "PickMade"
        data = message["data"]
        assert data["draftId"] == 3
        assert data["nextTeamId"] == 2
        assert data["currentPick"] == 2
        assert data["pick"]["overallPickNumber"] == 1
        assert data["pick"]["isAutoPick"] is False
        assert data["nextDeadline"].startswith("2026-03-01T00:00:00")

    def test_timer_update_message(self):
        message = TimerUpdate(draft_id=1, seconds_remaining=0).to_message()
        assert message == {"type": "TimerUpdate", "data": {"draftId": 1, "secondsRemaining": 0}}
