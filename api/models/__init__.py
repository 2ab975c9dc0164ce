"""Pydantic models for node replies and API responses."""
