"""Magical Garden — lifecycle engine for placeable growing plants."""

__version__ = "0.1.0"
