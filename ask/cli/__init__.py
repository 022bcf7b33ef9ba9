"""Command-line interface for ask."""
