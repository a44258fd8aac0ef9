"""Sahayak: a terminal coding assistant that stages file edits for review."""

__version__ = "0.1.0"
