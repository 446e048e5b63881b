"""In-memory metrics for the analysis pipeline."""
