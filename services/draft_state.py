"""Draft lifecycle transitions.

Scheduled -> InProgress <-> Paused -> Completed, with Cancelled reachable
from any non-terminal status. These functions only mutate the Draft row;
persistence, locking and notifications belong to the caller.
"""
from datetime import datetime, timedelta
from typing import Optional
from database.models import Draft, DraftOrderEntry, DraftPick, DraftStatus
from utils.exceptions import InvalidStateError, OrderNotSetError

TERMINAL_STATUSES = frozenset({DraftStatus.COMPLETED, DraftStatus.CANCELLED})
CANCELLABLE_STATUSES = frozenset({
    DraftStatus.SCHEDULED,
    DraftStatus.IN_PROGRESS,
    DraftStatus.PAUSED,
})

def pick_deadline(draft: Draft, now: datetime) -> datetime:
    return now + timedelta(seconds=draft.pick_time_limit_seconds)

def ensure_order_editable(draft: Draft) -> None:
    if draft.status != DraftStatus.SCHEDULED:
        raise InvalidStateError("Cannot modify draft order after draft has started")

def start(draft: Draft, first_entry: Optional[DraftOrderEntry], now: datetime) -> None:
    if draft.status != DraftStatus.SCHEDULED:
        raise InvalidStateError("Draft is not in scheduled status")
    if first_entry is None:
        raise OrderNotSetError(draft.id)

    draft.status = DraftStatus.IN_PROGRESS
    draft.actual_start_time = now
    draft.current_round = 1
    draft.current_pick = 1
    draft.current_team_on_clock = first_entry.team_id
    draft.current_pick_deadline = pick_deadline(draft, now)

def advance(draft: Draft, next_slot: Optional[DraftPick], now: datetime) -> bool:
    """Move the clock to `next_slot`, or complete the draft when there is none.

    Returns True when the draft completed.
    """
    if next_slot is not None:
        draft.current_pick = next_slot.overall_pick_number
        draft.current_round = next_slot.round
        draft.current_team_on_clock = next_slot.team_id
        draft.current_pick_deadline = pick_deadline(draft, now)
        return False

    draft.status = DraftStatus.COMPLETED
    draft.completed_time = now
    draft.current_team_on_clock = None
    draft.current_pick_deadline = None
    return True

def pause(draft: Draft) -> None:
    # round, pick and team on the clock are kept for resume
    if draft.status != DraftStatus.IN_PROGRESS:
        raise InvalidStateError("Only a draft in progress can be paused")
    draft.status = DraftStatus.PAUSED
    draft.current_pick_deadline = None

def resume(draft: Draft, now: datetime) -> None:
    if draft.status != DraftStatus.PAUSED:
        raise InvalidStateError("Only a paused draft can be resumed")
    draft.status = DraftStatus.IN_PROGRESS
    draft.current_pick_deadline = pick_deadline(draft, now)

def cancel(draft: Draft) -> None:
    if draft.status not in CANCELLABLE_STATUSES:
        raise InvalidStateError(f"Cannot cancel a draft that is {draft.status.value}")
    draft.status = DraftStatus.CANCELLED
    draft.current_team_on_clock = None
    draft.current_pick_deadline = None
