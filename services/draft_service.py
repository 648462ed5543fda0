"""Service orchestrating live drafts: order, start, picks, pause/resume and timeouts."""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from config.settings import DraftConfig
from database.models import Draft, DraftMode, DraftPick, DraftStatus, utc_now, ensure_utc
from services import draft_state
from services.auto_pick import AutoPickPolicy, BestAvailablePolicy
from services.draft_clock import DraftClock
from services.draft_events import (
    DraftCancelled,
    DraftCompleted,
    DraftPaused,
    DraftResumed,
    DraftStarted,
    PickDetails,
    PickMade,
)
from services.draft_notifier import DraftNotifier
from services.draft_views import DraftOrderView, DraftSummary, DraftView
from services.order_builder import OrderPosition, TradedPick, base_order, build_draft_order
from services.pick_ledger import PickLedger
from services.roster_directory import RosterDirectory
from services.turn_arbiter import admit_pick
from utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

class DraftService:
    """Draft orchestration engine.

    Every mutation of a draft runs under that draft's lock, so the
    admission checks, the ledger write and the advance-or-complete step
    form one unit per draft. Different drafts never share a lock.
    Events are published after commit and before the lock is released,
    which keeps their order identical to the order of state changes.
    """

    @classmethod
    def from_database(cls, database, config: DraftConfig, notifier: Optional[DraftNotifier] = None):
        """Create a DraftService instance from a Database."""
        return cls(
            session_factory=database.session,
            config=config,
            notifier=notifier or DraftNotifier()
        )

    def __init__(
        self,
        session_factory,
        config: DraftConfig,
        notifier: DraftNotifier,
        directory: Optional[RosterDirectory] = None,
        auto_pick_policy: Optional[AutoPickPolicy] = None,
        now: Callable[[], datetime] = utc_now
    ):
        self.session_factory = session_factory
        self.config = config
        self.notifier = notifier
        self.directory = directory or RosterDirectory(session_factory)
        self.auto_pick_policy = auto_pick_policy or BestAvailablePolicy()
        self._now = now
        self._locks: Dict[int, asyncio.Lock] = {}
        self.clock = DraftClock(
            notifier,
            self.auto_pick,
            update_interval=config.timer_update_interval_seconds,
            retry_seconds=config.auto_pick_retry_seconds,
            auto_pick_enabled=config.auto_pick_enabled,
            now=now
        )
        self.logger = logging.getLogger(__name__)

    async def start(self):
        """Re-arm clocks for drafts that were in progress before a restart."""
        self.logger.info("Starting draft service...")
        async with self.session_factory() as session:
            result = await session.execute(
                select(Draft).where(Draft.status == DraftStatus.IN_PROGRESS)
            )
            active_drafts = result.scalars().all()

        for draft in active_drafts:
            deadline = ensure_utc(draft.current_pick_deadline) or draft_state.pick_deadline(draft, self._now())
            self.clock.arm(draft.id, draft.current_pick, deadline)

        self.logger.info(f"Resumed clocks for {len(active_drafts)} drafts in progress")

    async def stop(self):
        """Cleanup service resources."""
        self.logger.info("Stopping draft service...")
        await self.clock.stop()
        self.logger.info("Draft service stopped")

    async def _lock_for(self, draft_id: int) -> asyncio.Lock:
        """Get the draft's lock, creating it on first use.

        Only drafts that exist and can still change keep a lock here.
        Finished drafts get an uncached lock.
        """
        lock = self._locks.get(draft_id)
        if lock is not None:
            return lock
        async with self.session_factory() as session:
            status = await session.scalar(select(Draft.status).where(Draft.id == draft_id))
        if status is None:
            raise NotFoundError("Draft", draft_id)
        if status in draft_state.TERMINAL_STATUSES:
            return asyncio.Lock()
        return self._locks.setdefault(draft_id, asyncio.Lock())

    def _release_lock(self, draft_id: int) -> None:
        self._locks.pop(draft_id, None)

    # Queries

    async def _load_draft(self, session: AsyncSession, league_id: int, draft_id: int) -> Draft:
        result = await session.execute(
            select(Draft).where(Draft.id == draft_id, Draft.league_id == league_id)
        )
        draft = result.scalar_one_or_none()
        if draft is None:
            raise NotFoundError("Draft", draft_id)
        return draft

    async def _draft_view(self, session: AsyncSession, draft: Draft) -> DraftView:
        total, made = await PickLedger(session, draft.id).counts()
        team_name = await self._team_name(session, draft.current_team_on_clock)
        return DraftView.build(draft, total, made, team_name)

    async def _team_name(self, session: AsyncSession, team_id: Optional[int]) -> Optional[str]:
        if team_id is None:
            return None
        names = await self.directory.team_names(session, [team_id])
        return names.get(team_id)

    async def _pick_details(self, session: AsyncSession, picks: Iterable[DraftPick]) -> List[PickDetails]:
        picks = list(picks)
        team_names = await self.directory.team_names(
            session,
            [p.team_id for p in picks] + [p.original_team_id for p in picks]
        )
        players = await self.directory.players(session, [p.player_id for p in picks])
        details = []
        for pick in picks:
            player = players.get(pick.player_id)
            details.append(PickDetails(
                id=pick.id,
                round=pick.round,
                overall_pick_number=pick.overall_pick_number,
                team_id=pick.team_id,
                team_name=team_names.get(pick.team_id, ""),
                player_id=pick.player_id,
                player_name=player.full_name if player else None,
                player_position=player.primary_position if player else None,
                pick_made_at=ensure_utc(pick.pick_made_at),
                is_auto_pick=pick.is_auto_pick,
                original_team_id=pick.original_team_id,
                original_team_name=team_names.get(pick.original_team_id)
            ))
        return details

    async def get_draft(self, league_id: int, draft_id: int) -> DraftView:
        """Get a draft with its pick-progress counts."""
        async with self.session_factory() as session:
            draft = await self._load_draft(session, league_id, draft_id)
            return await self._draft_view(session, draft)

    async def get_draft_by_id(self, draft_id: int) -> DraftView:
        """Get a draft without league scoping, for event stream snapshots."""
        async with self.session_factory() as session:
            draft = await session.get(Draft, draft_id)
            if draft is None:
                raise NotFoundError("Draft", draft_id)
            return await self._draft_view(session, draft)

    async def list_drafts(self, league_id: int) -> List[DraftSummary]:
        """List a league's drafts, latest scheduled start first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Draft)
                .where(Draft.league_id == league_id)
                .order_by(
                    Draft.scheduled_start_time.is_(None),
                    Draft.scheduled_start_time.desc(),
                    Draft.id.desc()
                )
            )
            return [
                DraftSummary(
                    id=d.id,
                    name=d.name,
                    mode=d.mode,
                    status=d.status,
                    scheduled_start_time=ensure_utc(d.scheduled_start_time),
                    total_rounds=d.total_rounds
                )
                for d in result.scalars().all()
            ]

    async def list_picks(self, league_id: int, draft_id: int) -> List[PickDetails]:
        """List every pick slot of a draft in overall order."""
        async with self.session_factory() as session:
            await self._load_draft(session, league_id, draft_id)
            slots = await PickLedger(session, draft_id).all_slots()
            return await self._pick_details(session, slots)

    async def get_draft_order(self, league_id: int, draft_id: int) -> List[DraftOrderView]:
        async with self.session_factory() as session:
            await self._load_draft(session, league_id, draft_id)
            return await self._order_views(session, draft_id)

    async def _order_views(self, session: AsyncSession, draft_id: int) -> List[DraftOrderView]:
        entries = await PickLedger(session, draft_id).order_entries()
        names = await self.directory.team_names(
            session,
            [e.team_id for e in entries] + [e.original_team_id for e in entries]
        )
        return [
            DraftOrderView(
                team_id=e.team_id,
                team_name=names.get(e.team_id, ""),
                round=e.round,
                pick_number=e.overall_pick_number,
                position_in_round=e.position_in_round,
                original_team_id=e.original_team_id,
                original_team_name=names.get(e.original_team_id)
            )
            for e in entries
        ]

    async def next_pick_for_team(self, league_id: int, draft_id: int, team_id: int) -> Optional[PickDetails]:
        """The team's next open slot at or after the current pick."""
        async with self.session_factory() as session:
            draft = await self._load_draft(session, league_id, draft_id)
            if draft.status in draft_state.TERMINAL_STATUSES:
                return None
            slot = await PickLedger(session, draft_id).next_open_after(
                draft.current_pick - 1, team_id=team_id
            )
            if slot is None:
                return None
            return (await self._pick_details(session, [slot]))[0]

    async def team_for_owner(self, league_id: int, owner_discord_id: int):
        async with self.session_factory() as session:
            return await self.directory.team_for_owner(session, league_id, owner_discord_id)

    # Mutations

    async def create_draft(
        self,
        league_id: int,
        name: str,
        total_rounds: int,
        mode: DraftMode = DraftMode.SYNCHRONOUS,
        scheduled_start_time: Optional[datetime] = None,
        pick_time_limit_seconds: Optional[int] = None,
        snake_draft: bool = True,
        allow_trading: bool = True
    ) -> DraftView:
        """Create a draft in Scheduled status."""
        if not name or not name.strip():
            raise ValidationError("Draft name is required")
        if len(name) > 100:
            raise ValidationError("Draft name must be at most 100 characters")
        if not 1 <= total_rounds <= self.config.max_rounds:
            raise ValidationError(
                f"Total rounds must be between 1 and {self.config.max_rounds}"
            )
        if pick_time_limit_seconds is None:
            pick_time_limit_seconds = self.config.default_pick_time_limit_seconds
        if not (self.config.min_pick_time_limit_seconds
                <= pick_time_limit_seconds
                <= self.config.max_pick_time_limit_seconds):
            raise ValidationError(
                f"Pick time limit must be between {self.config.min_pick_time_limit_seconds} "
                f"and {self.config.max_pick_time_limit_seconds} seconds"
            )

        async with self.session_factory() as session:
            if await self.directory.get_league(session, league_id) is None:
                raise NotFoundError("League", league_id)

            draft = Draft(
                league_id=league_id,
                name=name.strip(),
                mode=mode,
                total_rounds=total_rounds,
                scheduled_start_time=scheduled_start_time,
                pick_time_limit_seconds=pick_time_limit_seconds,
                snake_draft=snake_draft,
                allow_trading=allow_trading,
                status=DraftStatus.SCHEDULED,
                current_round=1,
                current_pick=1
            )
            session.add(draft)
            await session.commit()

            self.logger.info(
                f"Created draft '{draft.name}'",
                extra={'draft_id': draft.id, 'league_id': league_id}
            )
            return await self._draft_view(session, draft)

    async def set_draft_order(
        self,
        league_id: int,
        draft_id: int,
        order: Sequence[OrderPosition],
        traded_picks: Sequence[TradedPick] = ()
    ) -> List[DraftOrderView]:
        """Replace the draft order and all pick slots. Scheduled drafts only."""
        team_ids = base_order(order)

        async with await self._lock_for(draft_id):
            async with self.session_factory() as session:
                draft = await self._load_draft(session, league_id, draft_id)
                draft_state.ensure_order_editable(draft)

                if traded_picks and not draft.allow_trading:
                    raise InvalidStateError("This draft does not allow pick trading")

                league_teams = set(await self.directory.league_team_ids(session, league_id))
                involved = list(team_ids) + [t.team_id for t in traded_picks]
                for team_id in involved:
                    if team_id not in league_teams:
                        raise NotFoundError("Team", team_id)

                slots = build_draft_order(
                    team_ids, draft.total_rounds, draft.snake_draft, traded_picks
                )
                await PickLedger(session, draft_id).replace(slots)
                await session.commit()

                self.logger.info(
                    f"Draft order set: {len(team_ids)} teams, {len(slots)} picks",
                    extra={'draft_id': draft_id, 'league_id': league_id}
                )
                return await self._order_views(session, draft_id)

    async def start_draft(self, league_id: int, draft_id: int) -> DraftView:
        """Put the first team on the clock."""
        async with await self._lock_for(draft_id):
            async with self.session_factory() as session:
                draft = await self._load_draft(session, league_id, draft_id)
                first_entry = await PickLedger(session, draft_id).first_order_entry()
                draft_state.start(draft, first_entry, self._now())
                await session.commit()

                deadline = ensure_utc(draft.current_pick_deadline)
                self.notifier.publish(draft_id, DraftStarted(
                    draft_id=draft_id,
                    first_team_id=draft.current_team_on_clock,
                    first_team_name=await self._team_name(session, draft.current_team_on_clock),
                    deadline=deadline
                ))
                self.clock.arm(draft_id, draft.current_pick, deadline)

                self.logger.info(
                    "Started draft",
                    extra={'draft_id': draft_id, 'league_id': league_id,
                           'team_id': draft.current_team_on_clock}
                )
                return await self._draft_view(session, draft)

    async def make_pick(
        self,
        league_id: int,
        draft_id: int,
        team_id: int,
        player_id: int,
        is_auto_pick: bool = False
    ) -> PickDetails:
        """Submit a pick for the team on the clock."""
        async with await self._lock_for(draft_id):
            return await self._make_pick_locked(
                league_id, draft_id, team_id, player_id, is_auto_pick
            )

    async def _make_pick_locked(
        self,
        league_id: int,
        draft_id: int,
        team_id: int,
        player_id: int,
        is_auto_pick: bool
    ) -> PickDetails:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Draft).where(Draft.id == draft_id, Draft.league_id == league_id)
            )
            draft = result.scalar_one_or_none()
            ledger = PickLedger(session, draft_id)

            try:
                slot = await admit_pick(
                    session, draft, draft_id, team_id, player_id, ledger, self.directory
                )
            except (ConflictError, ForbiddenError, InvalidStateError, NotFoundError) as exc:
                self.logger.info(
                    f"Pick rejected: {exc}",
                    extra={'draft_id': draft_id, 'team_id': team_id}
                )
                raise

            now = self._now()
            try:
                if not await ledger.fill(slot, player_id, now, is_auto_pick):
                    raise ConflictError("Pick already made")
                next_slot = await ledger.slot_at(slot.overall_pick_number + 1)
                completed = draft_state.advance(draft, next_slot, now)
                await session.commit()
            except (ConflictError, IntegrityError):
                await session.rollback()
                self.logger.warning(
                    "Pick lost a race with a concurrent writer",
                    extra={'draft_id': draft_id, 'team_id': team_id}
                )
                raise ConflictError("Pick already made")

            pick = (await self._pick_details(session, [slot]))[0]
            next_deadline = ensure_utc(draft.current_pick_deadline)
            self.notifier.publish(draft_id, PickMade(
                draft_id=draft_id,
                pick=pick,
                next_team_id=draft.current_team_on_clock,
                next_team_name=await self._team_name(session, draft.current_team_on_clock),
                next_deadline=next_deadline,
                current_round=draft.current_round,
                current_pick=draft.current_pick
            ))

            if completed:
                self.clock.cancel(draft_id)
                self._release_lock(draft_id)
                self.notifier.publish(draft_id, DraftCompleted(
                    draft_id=draft_id,
                    completed_time=ensure_utc(draft.completed_time)
                ))
                self.logger.info("Draft completed", extra={'draft_id': draft_id, 'league_id': league_id})
            else:
                self.clock.arm(draft_id, draft.current_pick, next_deadline)

            self.logger.info(
                f"Pick {pick.overall_pick_number}: {pick.player_name} to {pick.team_name}"
                f"{' (auto)' if is_auto_pick else ''}",
                extra={'draft_id': draft_id, 'team_id': team_id}
            )
            return pick

    async def pause_draft(self, league_id: int, draft_id: int, reason: str = "") -> DraftView:
        """Stop the clock, keeping the team on the clock for resume."""
        async with await self._lock_for(draft_id):
            async with self.session_factory() as session:
                draft = await self._load_draft(session, league_id, draft_id)
                draft_state.pause(draft)
                await session.commit()

                self.clock.cancel(draft_id)
                self.notifier.publish(draft_id, DraftPaused(
                    draft_id=draft_id,
                    reason=reason or "Paused by commissioner"
                ))
                self.logger.info(f"Paused draft: {reason}", extra={'draft_id': draft_id})
                return await self._draft_view(session, draft)

    async def resume_draft(self, league_id: int, draft_id: int) -> DraftView:
        """Restart the clock for the team already on it."""
        async with await self._lock_for(draft_id):
            async with self.session_factory() as session:
                draft = await self._load_draft(session, league_id, draft_id)
                draft_state.resume(draft, self._now())
                await session.commit()

                deadline = ensure_utc(draft.current_pick_deadline)
                self.notifier.publish(draft_id, DraftResumed(
                    draft_id=draft_id,
                    team_id=draft.current_team_on_clock,
                    team_name=await self._team_name(session, draft.current_team_on_clock),
                    deadline=deadline
                ))
                self.clock.arm(draft_id, draft.current_pick, deadline)
                self.logger.info("Resumed draft", extra={'draft_id': draft_id})
                return await self._draft_view(session, draft)

    async def cancel_draft(self, league_id: int, draft_id: int, reason: str = "") -> DraftView:
        async with await self._lock_for(draft_id):
            async with self.session_factory() as session:
                draft = await self._load_draft(session, league_id, draft_id)
                draft_state.cancel(draft)
                await session.commit()

                self.clock.cancel(draft_id)
                self._release_lock(draft_id)
                self.notifier.publish(draft_id, DraftCancelled(
                    draft_id=draft_id,
                    reason=reason or "Cancelled by commissioner"
                ))
                self.logger.info(f"Cancelled draft: {reason}", extra={'draft_id': draft_id})
                return await self._draft_view(session, draft)

    async def auto_pick(self, draft_id: int, pick_number: int) -> bool:
        """Pick for the team on the clock once pick `pick_number` has expired.

        Returns False when the draft has already moved past that pick, was
        paused, or had its deadline extended; raises if the pick could not
        be made so the clock retries.
        """
        try:
            lock = await self._lock_for(draft_id)
        except NotFoundError:
            return False
        async with lock:
            async with self.session_factory() as session:
                draft = await session.get(Draft, draft_id)
                if (draft is None
                        or draft.status != DraftStatus.IN_PROGRESS
                        or draft.current_pick != pick_number):
                    return False
                deadline = ensure_utc(draft.current_pick_deadline)
                if deadline is not None and deadline > self._now():
                    return False

                team_id = draft.current_team_on_clock
                taken = await PickLedger(session, draft_id).taken_player_ids()
                player_id = await self.auto_pick_policy.choose_player(session, draft, team_id, taken)
                league_id = draft.league_id

            if player_id is None:
                raise ConflictError("No players available for auto-pick")

            self.logger.info(
                f"Pick {pick_number} clock expired, auto-picking player {player_id}",
                extra={'draft_id': draft_id, 'team_id': team_id}
            )
            await self._make_pick_locked(league_id, draft_id, team_id, player_id, True)
            return True
