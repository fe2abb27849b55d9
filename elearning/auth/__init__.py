"""Authentication: session reconciliation, identity and account flows."""
