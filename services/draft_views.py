"""Read models returned by the draft service."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from database.models import Draft, DraftMode, DraftStatus, ensure_utc

class _View(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class DraftView(_View):
    id: int
    league_id: int
    name: str
    mode: DraftMode
    status: DraftStatus
    scheduled_start_time: Optional[datetime] = None
    actual_start_time: Optional[datetime] = None
    completed_time: Optional[datetime] = None
    total_rounds: int
    current_round: int
    current_pick: int
    pick_time_limit_seconds: int
    current_pick_deadline: Optional[datetime] = None
    current_team_on_clock: Optional[int] = None
    current_team_name: Optional[str] = None
    snake_draft: bool
    allow_trading: bool
    total_picks: int
    picks_made: int

    @classmethod
    def build(
        cls,
        draft: Draft,
        total_picks: int,
        picks_made: int,
        current_team_name: Optional[str] = None
    ) -> "DraftView":
        return cls(
            id=draft.id,
            league_id=draft.league_id,
            name=draft.name,
            mode=draft.mode,
            status=draft.status,
            scheduled_start_time=ensure_utc(draft.scheduled_start_time),
            actual_start_time=ensure_utc(draft.actual_start_time),
            completed_time=ensure_utc(draft.completed_time),
            total_rounds=draft.total_rounds,
            current_round=draft.current_round,
            current_pick=draft.current_pick,
            pick_time_limit_seconds=draft.pick_time_limit_seconds,
            current_pick_deadline=ensure_utc(draft.current_pick_deadline),
            current_team_on_clock=draft.current_team_on_clock,
            current_team_name=current_team_name,
            snake_draft=draft.snake_draft,
            allow_trading=draft.allow_trading,
            total_picks=total_picks,
            picks_made=picks_made
        )

class DraftSummary(_View):
    id: int
    name: str
    mode: DraftMode
    status: DraftStatus
    scheduled_start_time: Optional[datetime] = None
    total_rounds: int

class DraftOrderView(_View):
    team_id: int
    team_name: str
    round: int
    pick_number: int
    position_in_round: int
    original_team_id: Optional[int] = None
    original_team_name: Optional[str] = None
