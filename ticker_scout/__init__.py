"""Semantic search over a catalog of public companies."""

__version__ = "1.0.0"
