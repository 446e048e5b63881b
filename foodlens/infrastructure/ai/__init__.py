"""Gemini REST API adapter."""
