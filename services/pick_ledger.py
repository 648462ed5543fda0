"""Pick ledger: the ordered set of pick slots for one draft."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from sqlalchemy import select, delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from database.models import DraftOrderEntry, DraftPick
from services.order_builder import OrderSlot

logger = logging.getLogger(__name__)

class PickLedger:
    """Read and fill the pick slots of a single draft.

    The ledger reports what is stored; it does not enforce turn order.
    Admission checks live in the turn arbiter.
    """

    def __init__(self, session: AsyncSession, draft_id: int):
        self.session = session
        self.draft_id = draft_id

    async def slot_at(self, overall_pick_number: int) -> Optional[DraftPick]:
        """Get the slot at an overall pick number."""
        result = await self.session.execute(
            select(DraftPick).where(
                DraftPick.draft_id == self.draft_id,
                DraftPick.overall_pick_number == overall_pick_number
            )
        )
        return result.scalar_one_or_none()

    async def next_open_after(
        self,
        overall_pick_number: int,
        team_id: Optional[int] = None
    ) -> Optional[DraftPick]:
        """Get the first unfilled slot strictly after an overall pick number,
        optionally only among the slots held by one team."""
        stmt = select(DraftPick).where(
            DraftPick.draft_id == self.draft_id,
            DraftPick.overall_pick_number > overall_pick_number,
            DraftPick.player_id.is_(None)
        )
        if team_id is not None:
            stmt = stmt.where(DraftPick.team_id == team_id)
        result = await self.session.execute(
            stmt
            .order_by(DraftPick.overall_pick_number)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def is_player_taken(self, player_id: int) -> bool:
        """Check whether a player is already assigned anywhere in the draft."""
        result = await self.session.execute(
            select(DraftPick.id).where(
                DraftPick.draft_id == self.draft_id,
                DraftPick.player_id == player_id
            ).limit(1)
        )
        return result.first() is not None

    async def taken_player_ids(self) -> List[int]:
        result = await self.session.execute(
            select(DraftPick.player_id).where(
                DraftPick.draft_id == self.draft_id,
                DraftPick.player_id.is_not(None)
            )
        )
        return list(result.scalars().all())

    async def all_slots(self) -> List[DraftPick]:
        result = await self.session.execute(
            select(DraftPick)
            .where(DraftPick.draft_id == self.draft_id)
            .order_by(DraftPick.overall_pick_number)
        )
        return list(result.scalars().all())

    async def order_entries(self) -> List[DraftOrderEntry]:
        result = await self.session.execute(
            select(DraftOrderEntry)
            .where(DraftOrderEntry.draft_id == self.draft_id)
            .order_by(DraftOrderEntry.overall_pick_number)
        )
        return list(result.scalars().all())

    async def first_order_entry(self) -> Optional[DraftOrderEntry]:
        result = await self.session.execute(
            select(DraftOrderEntry)
            .where(DraftOrderEntry.draft_id == self.draft_id)
            .order_by(DraftOrderEntry.overall_pick_number)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def counts(self) -> Tuple[int, int]:
        """Return (total slots, filled slots)."""
        result = await self.session.execute(
            select(func.count(DraftPick.id), func.count(DraftPick.player_id))
            .where(DraftPick.draft_id == self.draft_id)
        )
        total, made = result.one()
        return int(total or 0), int(made or 0)

    async def fill(
        self,
        slot: DraftPick,
        player_id: int,
        picked_at: datetime,
        is_auto_pick: bool = False
    ) -> bool:
        """Fill a slot only if it is still open. The caller commits the session.

        Returns False when another writer filled the slot first.
        """
        result = await self.session.execute(
            update(DraftPick)
            .where(DraftPick.id == slot.id, DraftPick.player_id.is_(None))
            .values(player_id=player_id, pick_made_at=picked_at, is_auto_pick=is_auto_pick)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.session.refresh(slot)
        return True

    async def replace(self, slots: Sequence[OrderSlot]) -> List[DraftOrderEntry]:
        """Delete the draft's order and picks and recreate them 1:1 from `slots`."""
        await self.session.execute(
            delete(DraftPick).where(DraftPick.draft_id == self.draft_id)
        )
        await self.session.execute(
            delete(DraftOrderEntry).where(DraftOrderEntry.draft_id == self.draft_id)
        )

        entries = []
        for slot in slots:
            entry = DraftOrderEntry(
                draft_id=self.draft_id,
                round=slot.round,
                overall_pick_number=slot.overall_pick_number,
                position_in_round=slot.position_in_round,
                team_id=slot.team_id,
                original_team_id=slot.original_team_id
            )
            self.session.add(entry)
            self.session.add(DraftPick(
                draft_id=self.draft_id,
                round=slot.round,
                overall_pick_number=slot.overall_pick_number,
                team_id=slot.team_id,
                original_team_id=slot.original_team_id
            ))
            entries.append(entry)

        logger.debug(
            f"Ledger rebuilt with {len(entries)} slots",
            extra={'draft_id': self.draft_id}
        )
        return entries
