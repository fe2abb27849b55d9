"""Course catalog and teacher course management."""
