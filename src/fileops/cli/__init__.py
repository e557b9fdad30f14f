"""Command-line interface for fileops."""
