"""Confide: anonymous confession feeds over a document store."""

__version__ = "0.1.0"
