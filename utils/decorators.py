from discord import app_commands
import discord
from utils.permissions import DraftPermissions

def is_commissioner():
    """Check if user is an administrator or holds the configured commissioner role."""
    def predicate(interaction: discord.Interaction) -> bool:
        role_id = interaction.client.config.discord.commissioner_role_id
        return DraftPermissions(role_id).can_manage_draft(interaction)
    return app_commands.check(predicate)
