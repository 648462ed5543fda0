"""Initialize services package."""
from .draft_service import DraftService
from .draft_notifier import DraftNotifier, DraftObserver, Subscription
from .draft_clock import DraftClock
from .draft_audit import DraftAuditRecorder
from .auto_pick import AutoPickPolicy, BestAvailablePolicy
from .roster_directory import RosterDirectory
from .order_builder import OrderPosition, OrderSlot, TradedPick, build_draft_order

__all__ = [
    'DraftService',
    'DraftNotifier',
    'DraftObserver',
    'Subscription',
    'DraftClock',
    'DraftAuditRecorder',
    'AutoPickPolicy',
    'BestAvailablePolicy',
    'RosterDirectory',
    'OrderPosition',
    'OrderSlot',
    'TradedPick',
    'build_draft_order'
]
