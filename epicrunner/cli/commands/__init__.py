"""epicrunner CLI commands."""
