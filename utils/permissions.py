from typing import Optional
from discord import Interaction, Member

class DraftPermissions:
    """Permission checks for draft commands."""

    def __init__(self, commissioner_role_id: Optional[int] = None):
        self.commissioner_role_id = commissioner_role_id

    def can_manage_draft(self, interaction: Interaction) -> bool:
        """Check if user can start, pause, resume or cancel drafts."""
        if not interaction.guild:
            return False

        member = interaction.user
        if not isinstance(member, Member):
            return False

        # Admin override
        if member.guild_permissions.administrator:
            return True

        if self.commissioner_role_id:
            role = interaction.guild.get_role(int(self.commissioner_role_id))
            return bool(role and role in member.roles)

        return False

    def can_pick(self, interaction: Interaction, owner_discord_id: Optional[int]) -> bool:
        """Check if user may submit a pick for a team.

        Only the team's owner picks for it; commissioners may pick on
        anyone's behalf.
        """
        if not interaction.guild:
            return False

        member = interaction.user
        if not isinstance(member, Member):
            return False

        if owner_discord_id is not None and member.id == owner_discord_id:
            return True

        return self.can_manage_draft(interaction)
