"""Logging setup and the API event feed."""
