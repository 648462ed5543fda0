from discord.ext import commands
import discord
from discord import app_commands
from typing import Optional
import logging
from services.draft_events import (
    DraftCancelled,
    DraftCompleted,
    DraftEvent,
    DraftPaused,
    DraftResumed,
    DraftStarted,
    PickMade,
)
from services.draft_notifier import DraftObserver
from services.draft_views import DraftView
from utils.decorators import is_commissioner
from utils.exceptions import DraftError
from utils.permissions import DraftPermissions

def team_label(team_id: int, team_name: Optional[str]) -> str:
    return team_name or f"Team {team_id}"

def event_embed(event: DraftEvent) -> Optional[discord.Embed]:
    """Build the channel announcement for an event; None for events not announced."""
    if isinstance(event, DraftStarted):
        embed = discord.Embed(
            title="Draft Started",
            description=f"{team_label(event.first_team_id, event.first_team_name)} is on the clock.",
            color=discord.Color.green()
        )
        embed.add_field(name="Pick Due", value=discord.utils.format_dt(event.deadline, style='R'))
    elif isinstance(event, PickMade):
        pick = event.pick
        title = f"Pick {pick.overall_pick_number} (Round {pick.round})"
        if pick.is_auto_pick:
            title += " - Auto"
        player = pick.player_name or f"Player {pick.player_id}"
        if pick.player_position:
            player += f" ({pick.player_position})"
        embed = discord.Embed(
            title=title,
            description=f"**{pick.team_name}** selects **{player}**",
            color=discord.Color.blue()
        )
        if pick.original_team_name:
            embed.add_field(name="Via", value=pick.original_team_name, inline=True)
        if event.next_team_id is not None and event.next_deadline is not None:
            embed.add_field(
                name="On the Clock",
                value=f"{team_label(event.next_team_id, event.next_team_name)}, due {discord.utils.format_dt(event.next_deadline, style='R')}",
                inline=False
            )
    elif isinstance(event, DraftPaused):
        embed = discord.Embed(title="Draft Paused", description=event.reason, color=discord.Color.orange())
    elif isinstance(event, DraftResumed):
        embed = discord.Embed(
            title="Draft Resumed",
            description=f"{team_label(event.team_id, event.team_name)} is on the clock.",
            color=discord.Color.green()
        )
        embed.add_field(name="Pick Due", value=discord.utils.format_dt(event.deadline, style='R'))
    elif isinstance(event, DraftCompleted):
        embed = discord.Embed(title="Draft Complete", color=discord.Color.gold())
    elif isinstance(event, DraftCancelled):
        embed = discord.Embed(title="Draft Cancelled", description=event.reason, color=discord.Color.red())
    else:
        return None

    embed.set_footer(text=f"Draft {event.draft_id}")
    return embed

def status_embed(draft: DraftView) -> discord.Embed:
    embed = discord.Embed(
        title=draft.name,
        description=f"Status: **{draft.status.value.replace('_', ' ').title()}**",
        color=discord.Color.blue()
    )
    embed.add_field(name="Round", value=f"{draft.current_round}/{draft.total_rounds}", inline=True)
    embed.add_field(name="Picks Made", value=f"{draft.picks_made}/{draft.total_picks}", inline=True)
    if draft.current_team_on_clock is not None:
        on_clock = team_label(draft.current_team_on_clock, draft.current_team_name)
        if draft.current_pick_deadline is not None:
            on_clock += f", due {discord.utils.format_dt(draft.current_pick_deadline, style='R')}"
        embed.add_field(name=f"On the Clock (pick {draft.current_pick})", value=on_clock, inline=False)
    embed.set_footer(text=f"Draft {draft.id} | League {draft.league_id}")
    return embed

class DiscordChannelObserver(DraftObserver):
    """Announces draft events in a text channel."""

    def __init__(self, bot: commands.Bot, channel_id: int):
        self.bot = bot
        self.channel_id = channel_id

    async def deliver(self, event: DraftEvent) -> None:
        embed = event_embed(event)
        if embed is None:
            return
        channel = self.bot.get_channel(self.channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(self.channel_id)
        await channel.send(embed=embed)

class Draft(commands.Cog):
    """Draft commands for league owners and commissioners."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.service = bot.draft_service
        self.permissions = DraftPermissions(bot.config.discord.commissioner_role_id)
        self.subscription = None
        self.logger = logging.getLogger(__name__)

    async def cog_load(self):
        """Called when the cog is loaded."""
        channel_id = self.bot.config.discord.announce_channel_id
        if channel_id:
            self.subscription = self.service.notifier.subscribe_all(
                DiscordChannelObserver(self.bot, int(channel_id))
            )
            self.logger.info(f"Announcing draft events in channel {channel_id}")
        else:
            self.logger.info("No announce channel configured; draft events will not be posted")

    async def cog_unload(self):
        """Called when the cog is unloaded."""
        if self.subscription is not None:
            self.service.notifier.unsubscribe(self.subscription)
            self.subscription = None

    async def cog_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError
    ):
        if isinstance(error, app_commands.CheckFailure):
            message = "You need the commissioner role to do that."
        else:
            self.logger.error(f"Draft command failed: {error}", exc_info=error)
            message = "Something went wrong running that command."
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)

    @app_commands.guild_only()
    @app_commands.command(name="draft_status", description="Show the state of a draft")
    @app_commands.describe(league_id="League ID", draft_id="Draft ID")
    async def draft_status(self, interaction: discord.Interaction, league_id: int, draft_id: int):
        await interaction.response.defer(ephemeral=True)
        try:
            draft = await self.service.get_draft(league_id, draft_id)
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return
        await interaction.followup.send(embed=status_embed(draft), ephemeral=True)

    @app_commands.guild_only()
    @app_commands.command(name="draft_pick", description="Draft a player for your team")
    @app_commands.describe(
        league_id="League ID",
        draft_id="Draft ID",
        player_id="ID of the player to draft"
    )
    async def draft_pick(
        self,
        interaction: discord.Interaction,
        league_id: int,
        draft_id: int,
        player_id: int
    ):
        await interaction.response.defer(ephemeral=True)
        try:
            team = await self.service.team_for_owner(league_id, interaction.user.id)
            if team is None:
                draft = await self.service.get_draft(league_id, draft_id)
                if (draft.current_team_on_clock is None
                        or not self.permissions.can_pick(interaction, None)):
                    await interaction.followup.send("You don't own a team in this league.", ephemeral=True)
                    return
                # commissioner picking for the team on the clock
                team_id = draft.current_team_on_clock
            else:
                team_id = team.id

            pick = await self.service.make_pick(league_id, draft_id, team_id, player_id)
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return

        await interaction.followup.send(
            f"Pick {pick.overall_pick_number}: {pick.team_name} selected {pick.player_name}.",
            ephemeral=True
        )

    @app_commands.guild_only()
    @app_commands.command(name="draft_start", description="Start a scheduled draft")
    @app_commands.describe(league_id="League ID", draft_id="Draft ID")
    @is_commissioner()
    async def draft_start(self, interaction: discord.Interaction, league_id: int, draft_id: int):
        await interaction.response.defer(ephemeral=True)
        try:
            draft = await self.service.start_draft(league_id, draft_id)
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return
        await interaction.followup.send(embed=status_embed(draft), ephemeral=True)

    @app_commands.guild_only()
    @app_commands.command(name="draft_pause", description="Pause a draft in progress")
    @app_commands.describe(league_id="League ID", draft_id="Draft ID", reason="Why the draft is paused")
    @is_commissioner()
    async def draft_pause(
        self,
        interaction: discord.Interaction,
        league_id: int,
        draft_id: int,
        reason: Optional[str] = None
    ):
        await interaction.response.defer(ephemeral=True)
        try:
            draft = await self.service.pause_draft(league_id, draft_id, reason or "")
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return
        await interaction.followup.send(embed=status_embed(draft), ephemeral=True)

    @app_commands.guild_only()
    @app_commands.command(name="draft_resume", description="Resume a paused draft")
    @app_commands.describe(league_id="League ID", draft_id="Draft ID")
    @is_commissioner()
    async def draft_resume(self, interaction: discord.Interaction, league_id: int, draft_id: int):
        await interaction.response.defer(ephemeral=True)
        try:
            draft = await self.service.resume_draft(league_id, draft_id)
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return
        await interaction.followup.send(embed=status_embed(draft), ephemeral=True)

    @app_commands.guild_only()
    @app_commands.command(name="draft_cancel", description="Cancel a draft")
    @app_commands.describe(league_id="League ID", draft_id="Draft ID", reason="Why the draft is cancelled")
    @is_commissioner()
    async def draft_cancel(
        self,
        interaction: discord.Interaction,
        league_id: int,
        draft_id: int,
        reason: Optional[str] = None
    ):
        await interaction.response.defer(ephemeral=True)
        try:
            draft = await self.service.cancel_draft(league_id, draft_id, reason or "")
        except DraftError as e:
            await interaction.followup.send(e.message, ephemeral=True)
            return
        await interaction.followup.send(embed=status_embed(draft), ephemeral=True)

async def setup(bot: commands.Bot):
    await bot.add_cog(Draft(bot))
