"""Record drafted players as league transactions."""
import logging
from database.models import Draft, Transaction
from services.draft_events import DraftEvent, PickMade
from services.draft_notifier import DraftObserver

class DraftAuditRecorder(DraftObserver):
    """Writes one `draft` Transaction per PickMade event."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.logger = logging.getLogger(__name__)

    async def deliver(self, event: DraftEvent) -> None:
        if not isinstance(event, PickMade) or event.pick.player_id is None:
            return

        pick = event.pick
        async with self.session_factory() as session:
            draft = await session.get(Draft, event.draft_id)
            if draft is None:
                self.logger.warning(
                    "Skipping audit record for unknown draft",
                    extra={'draft_id': event.draft_id}
                )
                return

            description = f"Round {pick.round}, pick {pick.overall_pick_number}: drafted {pick.player_name}"
            if pick.is_auto_pick:
                description += " (auto-pick)"
            session.add(Transaction(
                league_id=draft.league_id,
                team_id=pick.team_id,
                player_id=pick.player_id,
                draft_id=event.draft_id,
                type="draft",
                description=description[:255],
                timestamp=pick.pick_made_at
            ))
            await session.commit()

        self.logger.debug(
            f"Recorded transaction for pick {pick.overall_pick_number}",
            extra={'draft_id': event.draft_id, 'team_id': pick.team_id}
        )
