"""Namespace entry model for the database-backed file system.

Provides ``EntryBase``, a non-table base class.  Subclass with
``table=True`` and a custom ``__tablename__`` to use a different table
name per backend.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class EntryBase(SQLModel):
    """Base fields for one namespace entry: a file, a directory or a link."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(index=True, unique=True)
    parent_path: str = Field(default="/", index=True)
    name: str = Field(default="")
    kind: str = Field(default="file")
    content: bytes | None = Field(default=None, sa_type=LargeBinary)
    size_bytes: int = Field(default=0)
    link_target: str | None = Field(default=None)
    """Raw link target exactly as stored; only set when ``kind == "symlink"``."""
    access_time: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )
    modification_time: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )


class Entry(EntryBase, table=True):
    """Default entry table — ``linkfs_entries``."""

    __tablename__ = "linkfs_entries"
