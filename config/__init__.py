"""Initialize config package."""
