"""Customer support identity resolution and ticket threading service."""
