"""SQLAlchemy models for the database."""
import enum
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import (
    BigInteger, ForeignKey, String, Integer, Boolean, DateTime, Enum, UniqueConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .database import Base

def utc_now() -> datetime:
    """Helper function to get current UTC datetime."""
    return datetime.now(timezone.utc)

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Helper function to ensure datetime is UTC timezone-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

class DraftStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class DraftMode(str, enum.Enum):
    SYNCHRONOUS = "synchronous"
    ASYNCHRONOUS = "asynchronous"

class League(Base):
    """A fantasy league; drafts and teams are scoped to one."""
    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    max_teams: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    roster_size: Mapped[int] = mapped_column(Integer, default=40, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

class Team(Base):
    """A roster owner within a league."""
    __tablename__ = "teams"
    __table_args__ = (UniqueConstraint("league_id", "name", name="uq_team_league_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    league_id: Mapped[int] = mapped_column(
        ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(10), default="", nullable=False)
    owner_discord_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # Discord snowflake ID
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

class Player(Base):
    """A real baseball player; shared by every league."""
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    primary_position: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    mlb_team: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # Consensus ranking, used by auto-pick

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

class Draft(Base):
    """Model for a league-scheduled draft event."""
    __tablename__ = "drafts"

    id: Mapped[int] = mapped_column(primary_key=True)
    league_id: Mapped[int] = mapped_column(
        ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    mode: Mapped[DraftMode] = mapped_column(
        Enum(DraftMode, native_enum=False, length=20), default=DraftMode.SYNCHRONOUS, nullable=False
    )
    status: Mapped[DraftStatus] = mapped_column(
        Enum(DraftStatus, native_enum=False, length=20), default=DraftStatus.SCHEDULED, nullable=False
    )
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    current_round: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    current_pick: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    current_team_on_clock: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    current_pick_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    pick_time_limit_seconds: Mapped[int] = mapped_column(Integer, default=120, nullable=False)
    snake_draft: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_trading: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    scheduled_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # Owned collections; children only hold the draft id
    order_entries: Mapped[List["DraftOrderEntry"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DraftOrderEntry.overall_pick_number",
        lazy="raise"
    )
    picks: Mapped[List["DraftPick"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DraftPick.overall_pick_number",
        lazy="raise"
    )

class DraftOrderEntry(Base):
    """One (round, team) slot of the draft order."""
    __tablename__ = "draft_order"
    __table_args__ = (
        UniqueConstraint("draft_id", "overall_pick_number", name="uq_draft_order_pick"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    draft_id: Mapped[int] = mapped_column(
        ForeignKey("drafts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    overall_pick_number: Mapped[int] = mapped_column(Integer, nullable=False)
    position_in_round: Mapped[int] = mapped_column(Integer, nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False)
    original_team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)

class DraftPick(Base):
    """One ledger slot per overall pick number."""
    __tablename__ = "draft_picks"
    __table_args__ = (
        UniqueConstraint("draft_id", "overall_pick_number", name="uq_draft_pick_number"),
        # NULLs are distinct, so only filled slots are constrained
        UniqueConstraint("draft_id", "player_id", name="uq_draft_pick_player"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    draft_id: Mapped[int] = mapped_column(
        ForeignKey("drafts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    overall_pick_number: Mapped[int] = mapped_column(Integer, nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False)
    original_team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    player_id: Mapped[Optional[int]] = mapped_column(ForeignKey("players.id"), nullable=True)
    pick_made_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_auto_pick: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_filled(self) -> bool:
        return self.player_id is not None

class Transaction(Base):
    """Audit record of a roster movement caused by a draft pick."""
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    league_id: Mapped[int] = mapped_column(ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    draft_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("drafts.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    description: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
