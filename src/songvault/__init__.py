"""Songvault: project archive and preference persistence."""

__version__ = "0.1.0"
