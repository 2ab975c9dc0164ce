"""Node client and request argument normalization."""
