"""Command-line interface for fanbench."""
