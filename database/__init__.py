"""Initialize database package."""
from .database import Base, Database
from .models import (
    League,
    Team,
    Player,
    Draft,
    DraftOrderEntry,
    DraftPick,
    DraftStatus,
    DraftMode,
    Transaction,
)

__all__ = [
    'Base',
    'Database',
    'League',
    'Team',
    'Player',
    'Draft',
    'DraftOrderEntry',
    'DraftPick',
    'DraftStatus',
    'DraftMode',
    'Transaction',
]
