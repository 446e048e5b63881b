"""Food photo analysis."""
