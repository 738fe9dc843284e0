"""Bank payment boundary."""
