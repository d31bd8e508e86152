"""SQLModel database models for linkfs."""

from linkfs.models.entries import Entry, EntryBase

__all__ = [
    "Entry",
    "EntryBase",
]
