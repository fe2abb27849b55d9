"""Application shell wiring: state ownership, dependencies and error handling."""
