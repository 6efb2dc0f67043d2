"""Slack incident management: incident lifecycle, timelines, Block Kit messages and Statuspage sync."""

__version__ = "0.1.0"