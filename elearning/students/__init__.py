"""Teacher-facing student roster."""
