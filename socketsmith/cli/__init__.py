"""Command-line interface for Socket Smith."""
