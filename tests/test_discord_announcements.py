from datetime import datetime, timezone
from types import SimpleNamespace
import discord
from cogs.draft import DiscordChannelObserver, event_embed
from services.draft_events import (
    DraftCancelled,
    DraftCompleted,
    DraftResumed,
    DraftStarted,
    PickDetails,
    PickMade,
    TimerUpdate,
)

DEADLINE = datetime(2026, 3, 1, 18, 2, tzinfo=timezone.utc)

class FakeChannel:
    def __init__(self):
        self.sent = []

    async def send(self, embed=None):
        self.sent.append(embed)

class TestEventEmbeds:
    def test_pick_announcement(self):
        event = PickMade(
            draft_id=4,
            pick=PickDetails(
                id=1, round=2, overall_pick_number=7, team_id=3, team_name="Dingers",
                player_id=10, player_name="Mookie Betts", player_position="OF",
                is_auto_pick=True, original_team_id=2, original_team_name="Bombers"
            ),
            next_team_id=1,
            next_team_name="Aces",
            next_deadline=DEADLINE,
            current_round=2,
            current_pick=8
        )
        embed = event_embed(event)
        assert embed.title == "Pick 7 (Round 2) - Auto"
        assert "Dingers" in embed.description
        assert "Mookie Betts (OF)" in embed.description
        assert [f.name for f in embed.fields] == ["Via", "On the Clock"]
        assert embed.footer.text == "Draft 4"
        assert embed.fields[1].value.startswith("Aces, due ")

    def test_lifecycle_announcements(self):
        assert event_embed(DraftStarted(draft_id=1, first_team_id=5, deadline=DEADLINE)).title == "Draft Started"
        assert event_embed(DraftCompleted(draft_id=1, completed_time=DEADLINE)).title == "Draft Complete"
        cancelled = event_embed(DraftCancelled(draft_id=1, reason="Rainout"))
        assert cancelled.description == "Rainout"
        assert cancelled.colour == discord.Color.red()

    def test_team_names_preferred_over_ids(self):
        named = event_embed(DraftStarted(draft_id=1, first_team_id=5, first_team_name="Cyclones", deadline=DEADLINE))
        assert named.description == "Cyclones is on the clock."
        resumed = event_embed(DraftResumed(draft_id=1, team_id=5, deadline=DEADLINE))
        assert resumed.description == "Team 5 is on the clock."

    def test_timer_updates_are_not_announced(self):
        assert event_embed(TimerUpdate(draft_id=1, seconds_remaining=30)) is None

class TestDiscordChannelObserver:
    async def test_posts_to_configured_channel(self):
        channel = FakeChannel()
        bot = SimpleNamespace(get_channel=lambda channel_id: channel if channel_id == 55 else None)
        observer = DiscordChannelObserver(bot, 55)

        await observer.deliver(DraftCancelled(draft_id=2, reason="League folded"))
        await observer.deliver(TimerUpdate(draft_id=2, seconds_remaining=3))

        assert len(channel.sent) == 1
        assert channel.sent[0].title == "Draft Cancelled"
