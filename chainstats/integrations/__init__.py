"""Data sources outside the node."""
