"""Domain-level interfaces."""
