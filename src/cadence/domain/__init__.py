"""Domain layer: pure data structures and ports."""
