"""Real-time draft event payloads."""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class DraftEvent(BaseModel):
    """Base class for events published to draft observers."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True
    )

    draft_id: int

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_message(self) -> Dict[str, Any]:
        """Wire form used by the WebSocket transport."""
        return {
            "type": self.event_type,
            "data": self.model_dump(mode="json", by_alias=True)
        }

class PickDetails(BaseModel):
    """A filled pick as shown to clients."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    round: int
    overall_pick_number: int
    team_id: int
    team_name: str = ""
    player_id: Optional[int] = None
    player_name: Optional[str] = None
    player_position: Optional[str] = None
    pick_made_at: Optional[datetime] = None
    is_auto_pick: bool = False
    original_team_id: Optional[int] = None
    original_team_name: Optional[str] = None

class DraftStarted(DraftEvent):
    first_team_id: int
    first_team_name: Optional[str] = None
    deadline: datetime

class PickMade(DraftEvent):
    pick: PickDetails
    next_team_id: Optional[int] = None
    next_team_name: Optional[str] = None
    next_deadline: Optional[datetime] = None
    current_round: int
    current_pick: int

class TimerUpdate(DraftEvent):
    seconds_remaining: int = Field(ge=0)

class DraftPaused(DraftEvent):
    reason: str

class DraftResumed(DraftEvent):
    team_id: int
    team_name: Optional[str] = None
    deadline: datetime

class DraftCompleted(DraftEvent):
    completed_time: datetime

class DraftCancelled(DraftEvent):
    reason: str
