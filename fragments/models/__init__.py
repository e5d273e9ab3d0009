"""Domain models."""

from fragments.models.fragment import Fragment

__all__ = ["Fragment"]
