"""Terminal and JSON output for the CLI."""

from voltwatch.output.formatter import OutputFormatter

__all__ = ["OutputFormatter"]
