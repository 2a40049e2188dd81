"""Helf: AI-assisted strength training plans, sessions and offline session editing."""

__version__ = "0.1.0"
