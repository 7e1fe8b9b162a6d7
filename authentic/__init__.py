"""Authentic: guided reflection and journal chat orchestration."""

__version__ = "0.1.0"
