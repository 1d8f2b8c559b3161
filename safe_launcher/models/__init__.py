"""API data models."""
