"""Claude Code session manager: log ingestion and session reconstruction."""

__version__ = "0.1.0"
