"""Image recompression."""
