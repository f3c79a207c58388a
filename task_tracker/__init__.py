"""Personal task tracker with lifecycle rules, time analytics and Markdown reports."""

__version__ = "0.1.0"
