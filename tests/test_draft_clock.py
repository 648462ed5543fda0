import asyncio
from datetime import timedelta
import pytest
from config.settings import DraftConfig
from database.models import DraftStatus, utc_now
from services.draft_clock import DraftClock
from services.draft_events import PickMade, TimerUpdate
from services.draft_notifier import DraftNotifier
from services.draft_service import DraftService
from services.order_builder import OrderPosition
from tests.conftest import RecordingObserver

async def wait_for(predicate, timeout=5.0, interval=0.05):
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()

class TestDraftClock:
    async def test_expiry_calls_handler_once(self, notifier, recorder):
        calls = []

        async def on_expire(draft_id, pick_number):
            calls.append((draft_id, pick_number))
            return True

        clock = DraftClock(notifier, on_expire, update_interval=0.1)
        clock.arm(7, 3, utc_now() + timedelta(seconds=0.3))
        assert clock.is_armed(7)

        assert await wait_for(lambda: calls)
        await asyncio.sleep(0.2)
        assert calls == [(7, 3)]
        assert not clock.is_armed(7)

        await notifier.drain()
        updates = recorder.of_type(TimerUpdate)
        assert updates[-1].seconds_remaining == 0
        assert all(u.draft_id == 7 for u in updates)
        remaining = [u.seconds_remaining for u in updates]
        assert remaining == sorted(remaining, reverse=True)

    async def test_cancel_prevents_expiry(self, notifier):
        calls = []

        async def on_expire(draft_id, pick_number):
            calls.append(pick_number)
            return True

        clock = DraftClock(notifier, on_expire, update_interval=0.1)
        clock.arm(1, 1, utc_now() + timedelta(seconds=0.2))
        clock.cancel(1)
        await asyncio.sleep(0.4)
        assert calls == []
        assert clock.active_count == 0

    async def test_rearm_replaces_previous_pick(self, notifier):
        calls = []

        async def on_expire(draft_id, pick_number):
            calls.append(pick_number)
            return True

        clock = DraftClock(notifier, on_expire, update_interval=0.1)
        clock.arm(1, 1, utc_now() + timedelta(seconds=0.2))
        clock.arm(1, 2, utc_now() + timedelta(seconds=0.3))
        assert clock.active_count == 1
        assert await wait_for(lambda: calls)
        await asyncio.sleep(0.2)
        assert calls == [2]

    async def test_failed_handler_is_retried(self, notifier):
        attempts = []

        async def on_expire(draft_id, pick_number):
            attempts.append(pick_number)
            if len(attempts) < 3:
                raise RuntimeError("database busy")
            return True

        clock = DraftClock(notifier, on_expire, update_interval=0.1, retry_seconds=0.05)
        clock.arm(1, 4, utc_now())
        assert await wait_for(lambda: len(attempts) >= 3)
        await asyncio.sleep(0.2)
        assert attempts == [4, 4, 4]

    async def test_disabled_auto_pick_only_reports_zero(self, notifier, recorder):
        calls = []

        async def on_expire(draft_id, pick_number):
            calls.append(pick_number)
            return True

        clock = DraftClock(notifier, on_expire, update_interval=0.1, auto_pick_enabled=False)
        clock.arm(1, 1, utc_now() + timedelta(seconds=0.2))
        assert await wait_for(lambda: not clock.is_armed(1))
        await notifier.drain()
        assert calls == []
        assert recorder.of_type(TimerUpdate)[-1].seconds_remaining == 0

    async def test_stop_cancels_all(self, notifier):
        async def on_expire(draft_id, pick_number):
            return True

        clock = DraftClock(notifier, on_expire)
        for draft_id in (1, 2, 3):
            clock.arm(draft_id, 1, utc_now() + timedelta(seconds=60))
        assert clock.active_count == 3
        await clock.stop()
        assert clock.active_count == 0

    def test_seconds_remaining_rounds_up_and_floors_at_zero(self, notifier):
        now = utc_now()

        async def on_expire(draft_id, pick_number):
            return True

        clock = DraftClock(notifier, on_expire, now=lambda: now)
        assert clock.seconds_remaining(now + timedelta(seconds=4.2)) == 5
        assert clock.seconds_remaining(now - timedelta(seconds=3)) == 0
        assert clock.seconds_remaining(None) == 0

class TestTimeoutAutoPick:
    @pytest.fixture
    def live_config(self):
        return DraftConfig(
            min_pick_time_limit_seconds=1,
            timer_update_interval_seconds=0.2,
            auto_pick_retry_seconds=0.1
        )

    @pytest.fixture
    async def live_service(self, database, live_config, notifier, directory):
        service = DraftService(database.session, live_config, notifier, directory=directory)
        yield service
        await service.stop()

    @pytest.fixture
    async def draft(self, live_service, league):
        draft = await live_service.create_draft(league.id, "Lightning", 1, pick_time_limit_seconds=1)
        await live_service.set_draft_order(league.id, draft.id, [
            OrderPosition(team_id, i) for i, team_id in enumerate(league.team_ids, start=1)
        ])
        return draft

    async def test_expired_pick_is_auto_picked(self, live_service, league, draft, recorder, notifier):
        await live_service.start_draft(league.id, draft.id)
        assert await wait_for(lambda: recorder.of_type(PickMade), timeout=4)
        await live_service.pause_draft(league.id, draft.id)
        await notifier.drain()

        event = recorder.of_type(PickMade)[0]
        assert event.pick.is_auto_pick
        assert event.pick.overall_pick_number == 1
        assert event.pick.team_id == league.team_ids[0]
        assert event.pick.player_id == league.player_ids[0]
        assert event.next_team_id == league.team_ids[1]

    async def test_manual_pick_rearms_clock(self, live_service, league, draft, recorder, notifier):
        await live_service.start_draft(league.id, draft.id)
        await live_service.make_pick(league.id, draft.id, league.team_ids[0], league.player_ids[5])
        assert await wait_for(lambda: len(recorder.of_type(PickMade)) >= 2, timeout=4)
        await live_service.pause_draft(league.id, draft.id)
        await notifier.drain()

        manual, auto = recorder.of_type(PickMade)[:2]
        assert not manual.pick.is_auto_pick
        assert auto.pick.is_auto_pick
        assert auto.pick.overall_pick_number == 2
        assert auto.pick.player_id == league.player_ids[0]

    async def test_pause_stops_the_clock(self, live_service, league, draft, recorder, notifier):
        await live_service.start_draft(league.id, draft.id)
        await live_service.pause_draft(league.id, draft.id)
        await asyncio.sleep(1.5)
        await notifier.drain()
        assert recorder.of_type(PickMade) == []

    async def test_auto_picks_run_draft_to_completion(self, live_service, league, draft, recorder, notifier):
        await live_service.start_draft(league.id, draft.id)
        assert await wait_for(lambda: "DraftCompleted" in recorder.types(), timeout=8)
        await notifier.drain()

        done = await live_service.get_draft(league.id, draft.id)
        assert done.status == DraftStatus.COMPLETED
        picks = recorder.of_type(PickMade)
        assert [p.pick.player_id for p in picks] == league.player_ids[:4]
        assert not live_service.clock.is_armed(draft.id)

    async def test_service_start_rearms_live_drafts(self, database, live_config, directory, live_service, league, draft):
        await live_service.start_draft(league.id, draft.id)
        await live_service.stop()

        notifier = DraftNotifier()
        restarted = DraftService(database.session, live_config, notifier, directory=directory)
        observer = RecordingObserver()
        notifier.subscribe_all(observer)
        try:
            await restarted.start()
            assert restarted.clock.is_armed(draft.id)
            assert await wait_for(lambda: observer.of_type(PickMade), timeout=4)
        finally:
            await restarted.stop()
            await notifier.close()
