"""Derived chain metrics and dashboard aggregation."""
