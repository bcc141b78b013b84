"""Discovery and reconciliation pipeline for Claude Code plugin marketplaces and skills."""

__version__ = "0.1.0"
