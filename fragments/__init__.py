"""Fragments: owner-scoped content storage service."""

__version__ = "1.0.0"
