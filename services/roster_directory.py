"""Lookups for the leagues, teams and players a draft refers to."""
import logging
from typing import Dict, Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from database.models import League, Team, Player
from utils.exceptions import ConflictError

class RosterDirectory:
    """Identity lookups for leagues, teams and players.

    Lookups take the caller's session so they run inside the same
    transaction as the draft operation that needs them.
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_database(cls, database):
        """Create a directory instance from a Database."""
        return cls(session_factory=database.session)

    async def get_league(self, session: AsyncSession, league_id: int) -> Optional[League]:
        return await session.get(League, league_id)

    async def get_team(self, session: AsyncSession, team_id: int) -> Optional[Team]:
        return await session.get(Team, team_id)

    async def get_player(self, session: AsyncSession, player_id: int) -> Optional[Player]:
        return await session.get(Player, player_id)

    async def league_team_ids(self, session: AsyncSession, league_id: int) -> List[int]:
        result = await session.execute(
            select(Team.id).where(Team.league_id == league_id).order_by(Team.id)
        )
        return list(result.scalars().all())

    async def team_names(self, session: AsyncSession, team_ids: Iterable[Optional[int]]) -> Dict[int, str]:
        ids = {team_id for team_id in team_ids if team_id is not None}
        if not ids:
            return {}
        result = await session.execute(select(Team.id, Team.name).where(Team.id.in_(ids)))
        return {team_id: name for team_id, name in result.all()}

    async def players(self, session: AsyncSession, player_ids: Iterable[Optional[int]]) -> Dict[int, Player]:
        ids = {player_id for player_id in player_ids if player_id is not None}
        if not ids:
            return {}
        result = await session.execute(select(Player).where(Player.id.in_(ids)))
        return {player.id: player for player in result.scalars().all()}

    async def team_for_owner(
        self,
        session: AsyncSession,
        league_id: int,
        owner_discord_id: int
    ) -> Optional[Team]:
        result = await session.execute(
            select(Team).where(
                Team.league_id == league_id,
                Team.owner_discord_id == owner_discord_id
            )
        )
        return result.scalars().first()

    # Registration helpers used when seeding a league

    async def create_league(self, name: str, slug: str, max_teams: int = 30) -> League:
        async with self.session_factory() as session:
            league = League(name=name, slug=slug, max_teams=max_teams)
            session.add(league)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ConflictError(f"League slug '{slug}' is already in use")
            self.logger.info(f"Created league {league.id} '{name}'", extra={'league_id': league.id})
            return league

    async def create_team(
        self,
        league_id: int,
        name: str,
        abbreviation: str = "",
        owner_discord_id: Optional[int] = None
    ) -> Team:
        async with self.session_factory() as session:
            team = Team(
                league_id=league_id,
                name=name,
                abbreviation=abbreviation,
                owner_discord_id=owner_discord_id
            )
            session.add(team)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise ConflictError(f"Team '{name}' already exists in league {league_id}")
            return team

    async def create_player(
        self,
        first_name: str,
        last_name: str,
        primary_position: Optional[str] = None,
        rank: Optional[int] = None,
        mlb_team: Optional[str] = None
    ) -> Player:
        async with self.session_factory() as session:
            player = Player(
                first_name=first_name,
                last_name=last_name,
                primary_position=primary_position,
                rank=rank,
                mlb_team=mlb_team
            )
            session.add(player)
            await session.commit()
            return player
