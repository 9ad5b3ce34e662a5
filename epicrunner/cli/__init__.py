"""Command line interface for epicrunner."""
