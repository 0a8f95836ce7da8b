"""Recruiting evaluation toolkit: criteria, scorecards and AI-assisted analyses."""

__version__ = "0.1.0"

__all__ = ["__version__"]
