"""Slack bridge between team chat and the RACEN answer API."""

__version__ = "1.0.0"
