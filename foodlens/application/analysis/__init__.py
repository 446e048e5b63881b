"""Presentation-facing analysis session."""
