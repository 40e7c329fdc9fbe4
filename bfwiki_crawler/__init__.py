"""Brave Frontier wiki crawler: unit metadata and player level tables."""

__version__ = "0.1.0"
