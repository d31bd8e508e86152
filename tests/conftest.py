"""Shared fixtures for linkfs tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from linkfs._linkfs_async import LinkFSAsync
from linkfs.fs.local_disk import LocalDiskBackend
from linkfs.models.entries import Entry  # noqa: F401  (registers the table)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from linkfs.fs.file_context import FileContext

AUTHORITY = "nn:8020"
FILE_SIZE = 16384
BASE_DIR1 = "/test1"
BASE_DIR2 = "/test2"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def payload(size: int = FILE_SIZE) -> bytes:
    """Deterministic non-trivial file content."""
    return bytes((i * 31 + 7) % 251 for i in range(size))


async def write_file(fc: FileContext, path, size: int = FILE_SIZE) -> None:
    """Create *path* with ``payload(size)``, like a test fixture file."""
    async with await fc.create(path) as out:
        out.write(payload(size))


async def read_file(fc: FileContext, path, size: int = FILE_SIZE) -> bytes:
    """Open *path* and read exactly *size* bytes."""
    with await fc.open(path) as stream:
        return stream.read_fully(size)


# ---------------------------------------------------------------------------
# Engines and mounts
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async session on the in-memory engine."""
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def host_dir(tmp_path):
    """Host directory for the local backend, separate from other tmp files."""
    root = tmp_path / "host"
    os.makedirs(root)
    return root


@pytest.fixture(params=["local", "database"])
async def lfs(request, host_dir, async_engine) -> AsyncIterator[LinkFSAsync]:
    """LinkFSAsync with exactly one backend mounted, once per backend kind."""
    fs = LinkFSAsync()
    if request.param == "local":
        await fs.mount(LocalDiskBackend(host_dir))
    else:
        await fs.mount(engine=async_engine, authority=AUTHORITY)
    yield fs
    await fs.close()


@pytest.fixture
async def fc(lfs: LinkFSAsync) -> FileContext:
    """Session on the parametrized backend with both base directories made."""
    ctx = await lfs.context()
    await ctx.mkdir(BASE_DIR1, create_parent=True)
    await ctx.mkdir(BASE_DIR2, create_parent=True)
    return ctx


@pytest.fixture
async def both(host_dir, async_engine) -> AsyncIterator[LinkFSAsync]:
    """LinkFSAsync with a local disk and a database namespace mounted."""
    fs = LinkFSAsync()
    await fs.mount(LocalDiskBackend(host_dir))
    await fs.mount(engine=async_engine, authority=AUTHORITY)
    yield fs
    await fs.close()
