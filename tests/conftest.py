"""Shared fixtures for the draft engine tests."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
import pytest
from sqlalchemy import update
from config.settings import DraftConfig
from database.database import Database
from database.models import DraftPick
from services.draft_events import TimerUpdate
from services.draft_notifier import DraftNotifier, DraftObserver
from services.draft_service import DraftService
from services.order_builder import OrderPosition
from services.roster_directory import RosterDirectory

class RecordingObserver(DraftObserver):
    """Keeps every delivered event in order."""

    def __init__(self):
        self.events = []

    async def deliver(self, event):
        self.events.append(event)

    def types(self, include_timer: bool = False):
        return [
            e.event_type for e in self.events
            if include_timer or not isinstance(e, TimerUpdate)
        ]

    def of_type(self, event_class):
        return [e for e in self.events if isinstance(e, event_class)]

class FrozenClock:
    """A settable replacement for utc_now."""

    def __init__(self, start: datetime = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float):
        self.current += timedelta(seconds=seconds)

@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'draft.db'}")
    await db.create_all()
    yield db
    await db.close()

@pytest.fixture
def directory(database):
    return RosterDirectory.from_database(database)

@pytest.fixture
async def league(directory):
    """A league with four owned teams and twelve ranked players plus one unranked."""
    record = await directory.create_league("Test League", "test-league", max_teams=4)
    teams = []
    for i, name in enumerate(["Aces", "Bombers", "Cyclones", "Dingers"], start=1):
        teams.append(await directory.create_team(record.id, name, name[:3].upper(), owner_discord_id=1000 + i))
    players = []
    for rank in range(1, 13):
        players.append(await directory.create_player(
            f"Player{rank}", f"Ranked{rank}", primary_position="OF", rank=rank
        ))
    unranked = await directory.create_player("Walk", "On", primary_position="P")
    return SimpleNamespace(
        id=record.id,
        team_ids=[t.id for t in teams],
        teams=teams,
        player_ids=[p.id for p in players],
        unranked_player_id=unranked.id
    )

@pytest.fixture
def draft_config():
    return DraftConfig(
        min_pick_time_limit_seconds=1,
        timer_update_interval_seconds=5,
        auto_pick_retry_seconds=0.1
    )

@pytest.fixture
async def notifier():
    notifier = DraftNotifier()
    yield notifier
    await notifier.close()

@pytest.fixture
async def recorder(notifier):
    observer = RecordingObserver()
    notifier.subscribe_all(observer)
    return observer

@pytest.fixture
def frozen_clock():
    return FrozenClock()

@pytest.fixture
async def service(database, draft_config, notifier, directory, recorder, frozen_clock):
    service = DraftService(
        database.session,
        draft_config,
        notifier,
        directory=directory,
        now=frozen_clock
    )
    yield service
    await service.stop()

@pytest.fixture
def make_draft(service, league):
    """Create a draft with the league's teams ordered by id."""
    async def _make_draft(total_rounds=2, snake_draft=True, allow_trading=True,
                          pick_time_limit_seconds=120, with_order=True, traded_picks=()):
        draft = await service.create_draft(
            league.id,
            "Spring Draft",
            total_rounds,
            pick_time_limit_seconds=pick_time_limit_seconds,
            snake_draft=snake_draft,
            allow_trading=allow_trading
        )
        if with_order:
            await service.set_draft_order(
                league.id,
                draft.id,
                [OrderPosition(team_id, position) for position, team_id in enumerate(league.team_ids, start=1)],
                traded_picks
            )
        return draft
    return _make_draft

@pytest.fixture
def prefill_slot(database):
    """Fill a pick slot directly in the database, bypassing the service."""
    async def _prefill_slot(draft_id, overall_pick_number, player_id):
        async with database.session() as session:
            await session.execute(
                update(DraftPick)
                .where(DraftPick.draft_id == draft_id, DraftPick.overall_pick_number == overall_pick_number)
                .values(player_id=player_id)
            )
            await session.commit()
    return _prefill_slot
