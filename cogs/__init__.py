"""Initialize cogs package."""
