"""Player selection for picks made on a team's behalf."""
from abc import ABC, abstractmethod
from typing import Iterable, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from database.models import Draft, Player

class AutoPickPolicy(ABC):
    """Abstract interface for choosing a player when a pick clock expires."""

    @abstractmethod
    async def choose_player(
        self,
        session: AsyncSession,
        draft: Draft,
        team_id: int,
        taken_player_ids: Iterable[int]
    ) -> Optional[int]:
        """Return the player id to draft, or None if nobody is available."""
        pass

class BestAvailablePolicy(AutoPickPolicy):
    """Take the best-ranked undrafted player; unranked players come last."""

    async def choose_player(self, session, draft, team_id, taken_player_ids):
        taken = list(taken_player_ids)
        stmt = select(Player.id)
        if taken:
            stmt = stmt.where(Player.id.not_in(taken))
        stmt = stmt.order_by(Player.rank.is_(None), Player.rank, Player.id).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
