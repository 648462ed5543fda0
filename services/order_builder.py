"""Draft order generation: snake reversal and traded-pick substitution."""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from utils.exceptions import ValidationError

@dataclass(frozen=True)
class OrderSlot:
    """A single pick slot produced by the order builder."""
    round: int
    overall_pick_number: int
    position_in_round: int
    team_id: int
    original_team_id: Optional[int] = None

@dataclass(frozen=True)
class TradedPick:
    """A pick in `round` that `original_team_id` has traded to `team_id`."""
    round: int
    original_team_id: int
    team_id: int

@dataclass(frozen=True)
class OrderPosition:
    """A team's position in the base (round one) order."""
    team_id: int
    position: int

def base_order(positions: Sequence[OrderPosition]) -> List[int]:
    """Sort submitted positions into the round-one team order."""
    if not positions:
        raise ValidationError("Draft order must contain at least one team")
    team_ids = [p.team_id for p in positions]
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Each team may appear only once in the draft order")
    slots = [p.position for p in positions]
    if len(set(slots)) != len(slots):
        raise ValidationError("Draft order positions must be unique")
    return [p.team_id for p in sorted(positions, key=lambda p: p.position)]

def round_order(team_ids: Sequence[int], round_number: int, snake_draft: bool) -> List[int]:
    """Team order for one 1-indexed round."""
    order = list(team_ids)
    if snake_draft and round_number % 2 == 0:
        order.reverse()
    return order

def _index_trades(
    traded_picks: Iterable[TradedPick],
    team_ids: Sequence[int],
    total_rounds: int
) -> Dict[Tuple[int, int], int]:
    trades: Dict[Tuple[int, int], int] = {}
    known = set(team_ids)
    for trade in traded_picks:
        if not 1 <= trade.round <= total_rounds:
            raise ValidationError(
                f"Traded pick round {trade.round} is outside 1..{total_rounds}"
            )
        if trade.original_team_id not in known:
            raise ValidationError(
                f"Team {trade.original_team_id} has no pick in the draft order"
            )
        key = (trade.round, trade.original_team_id)
        if key in trades:
            raise ValidationError(
                f"Round {trade.round} pick of team {trade.original_team_id} traded more than once"
            )
        trades[key] = trade.team_id
    return trades

def build_draft_order(
    team_ids: Sequence[int],
    total_rounds: int,
    snake_draft: bool,
    traded_picks: Iterable[TradedPick] = ()
) -> List[OrderSlot]:
    """Build every pick slot for a draft.

    Odd rounds follow `team_ids`; even rounds are reversed when
    `snake_draft` is set. Overall pick numbers run contiguously from 1
    and position-in-round restarts at 1 each round. A traded pick keeps
    its slot but is assigned to the receiving team, with the original
    owner recorded in `original_team_id`.

    The result depends only on the arguments, so calling it twice with
    the same input yields the same slots.
    """
    if total_rounds <= 0 or not team_ids:
        return []
    if len(set(team_ids)) != len(team_ids):
        raise ValidationError("Each team may appear only once in the draft order")

    trades = _index_trades(traded_picks, team_ids, total_rounds)

    slots: List[OrderSlot] = []
    overall_pick = 1
    for round_number in range(1, total_rounds + 1):
        for position, team_id in enumerate(round_order(team_ids, round_number, snake_draft), start=1):
            new_owner = trades.get((round_number, team_id))
            if new_owner is not None and new_owner != team_id:
                slot = OrderSlot(round_number, overall_pick, position, new_owner, team_id)
            else:
                slot = OrderSlot(round_number, overall_pick, position, team_id)
            slots.append(slot)
            overall_pick += 1
    return slots
