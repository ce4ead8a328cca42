"""Command-line interface for shipform."""
