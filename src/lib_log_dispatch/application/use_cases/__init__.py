"""Use cases orchestrating filtering, buffering, and dispatch."""
