"""HTTP surface of the dashboard API."""
