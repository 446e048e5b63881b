"""External adapters."""
