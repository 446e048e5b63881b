"""Domain layer: analysis models, prompt, decoding and errors."""
