"""Request bodies accepted by the draft HTTP API."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from database.models import DraftMode
from services.order_builder import OrderPosition, TradedPick

class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

class CreateDraftRequest(_Request):
    name: str = Field(min_length=1, max_length=100)
    total_rounds: int
    mode: DraftMode = DraftMode.SYNCHRONOUS
    scheduled_start_time: Optional[datetime] = None
    pick_time_limit_seconds: Optional[int] = None
    snake_draft: bool = True
    allow_trading: bool = True

class OrderPositionBody(_Request):
    team_id: int
    position: int

class TradedPickBody(_Request):
    round: int
    original_team_id: int
    team_id: int

class SetDraftOrderRequest(_Request):
    positions: List[OrderPositionBody] = Field(min_length=1)
    traded_picks: List[TradedPickBody] = Field(default_factory=list)

    def order(self) -> List[OrderPosition]:
        return [OrderPosition(team_id=p.team_id, position=p.position) for p in self.positions]

    def trades(self) -> List[TradedPick]:
        return [
            TradedPick(round=t.round, original_team_id=t.original_team_id, team_id=t.team_id)
            for t in self.traded_picks
        ]

class MakePickRequest(_Request):
    team_id: int
    player_id: int

class ReasonRequest(_Request):
    reason: str = Field(default="", max_length=500)
