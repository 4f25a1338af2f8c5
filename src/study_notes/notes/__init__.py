"""Note editing commands."""
