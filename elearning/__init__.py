"""CED e-learning application shell."""
