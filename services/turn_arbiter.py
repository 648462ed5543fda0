"""Admission checks for pick attempts."""
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from database.models import Draft, DraftPick, DraftStatus
from services.pick_ledger import PickLedger
from services.roster_directory import RosterDirectory
from utils.exceptions import (
    NotFoundError,
    InvalidStateError,
    ForbiddenError,
    ConflictError,
    InvariantViolationError
)

logger = logging.getLogger(__name__)

async def admit_pick(
    session: AsyncSession,
    draft: Optional[Draft],
    draft_id: int,
    team_id: int,
    player_id: int,
    ledger: PickLedger,
    directory: RosterDirectory
) -> DraftPick:
    """Run the pick admission checks in order and return the slot to fill.

    The first failing check raises; nothing is mutated here.
    """
    if draft is None:
        raise NotFoundError("Draft", draft_id)

    if draft.status != DraftStatus.IN_PROGRESS:
        raise InvalidStateError("Draft is not in progress")

    if draft.current_team_on_clock != team_id:
        raise ForbiddenError("It is not your turn to pick")

    if await directory.get_player(session, player_id) is None:
        raise NotFoundError("Player", player_id)

    if await ledger.is_player_taken(player_id):
        raise ConflictError("Player has already been drafted")

    slot = await ledger.slot_at(draft.current_pick)
    if slot is None or slot.is_filled or slot.team_id != draft.current_team_on_clock:
        logger.critical(
            f"Pick ledger out of sync at pick {draft.current_pick}: "
            f"slot={'missing' if slot is None else slot.id}",
            extra={'draft_id': draft.id, 'team_id': team_id}
        )
        raise InvariantViolationError("Could not find current pick")

    return slot
