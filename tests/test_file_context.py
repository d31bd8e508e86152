"""Tests for FileContext edge cases that do not involve links."""

from __future__ import annotations

import logging

import pytest
from conftest import BASE_DIR1, BASE_DIR2, read_file, write_file

from linkfs.fs.exceptions import (
    AlreadyExistsError,
    DirectoryNotEmptyError,
    InvalidPathError,
    LinkFSError,
    ParentNotDirectoryError,
    ParentNotFoundError,
    PathIsDirectoryError,
    PathNotFoundError,
)

FILE = f"{BASE_DIR1}/file"


class TestCreate:
    async def test_create_needs_parent(self, fc):
        with pytest.raises(ParentNotFoundError):
            await fc.create("/nowhere/file")

    async def test_create_parent(self, fc):
        async with await fc.create("/a/b/c", create_parent=True) as out:
            out.write(b"abc")
        assert await fc.is_directory("/a/b")
        assert await read_file(fc, "/a/b/c", 3) == b"abc"

    async def test_create_existing(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(AlreadyExistsError):
            await fc.create(FILE)

    async def test_create_over_directory(self, fc):
        with pytest.raises(AlreadyExistsError):
            await fc.create(BASE_DIR1, overwrite=True)

    async def test_create_is_visible_before_close(self, fc):
        stream = await fc.create(FILE)
        assert await fc.exists(FILE)
        stream.write(b"data")
        await stream.close()
        assert (await fc.get_file_status(FILE)).size == 4

    async def test_invalid_path(self, fc):
        with pytest.raises(InvalidPathError):
            await fc.create("")


class TestContentErrors:
    async def test_open_directory(self, fc):
        with pytest.raises(PathIsDirectoryError):
            await fc.open(BASE_DIR1)

    async def test_append_directory(self, fc):
        with pytest.raises(PathIsDirectoryError):
            await fc.append(BASE_DIR1)

    async def test_append_missing(self, fc):
        with pytest.raises(PathNotFoundError):
            await fc.append(FILE)

    async def test_file_as_parent(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(ParentNotDirectoryError):
            await fc.get_file_status(f"{FILE}/child")
        assert not await fc.exists(f"{FILE}/child")
        assert not await fc.is_file(f"{FILE}/child")


class TestMkdir:
    async def test_mkdir_needs_parent(self, fc):
        with pytest.raises(ParentNotFoundError):
            await fc.mkdir("/x/y")

    async def test_mkdir_parents_existing_ok(self, fc):
        await fc.mkdir(BASE_DIR1, create_parent=True)
        await fc.mkdir(f"{BASE_DIR1}/x/y", create_parent=True)
        assert await fc.is_directory(f"{BASE_DIR1}/x/y")

    async def test_mkdir_existing(self, fc):
        with pytest.raises(AlreadyExistsError):
            await fc.mkdir(BASE_DIR1)


class TestDelete:
    async def test_non_empty(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(DirectoryNotEmptyError):
            await fc.delete(BASE_DIR1)
        assert await fc.delete(BASE_DIR1, recursive=True)
        assert not await fc.exists(FILE)

    async def test_empty_dir(self, fc):
        assert await fc.delete(BASE_DIR2)
        assert not await fc.exists(BASE_DIR2)

    async def test_below_a_file(self, fc):
        await write_file(fc, FILE)
        assert not await fc.delete(f"{FILE}/x")
        assert await fc.is_file(FILE)


class TestRename:
    async def test_rename_missing(self, fc):
        with pytest.raises(PathNotFoundError):
            await fc.rename(f"{BASE_DIR1}/nothing", f"{BASE_DIR1}/other")

    async def test_rename_to_self_is_noop(self, fc):
        await write_file(fc, FILE)
        await fc.rename(FILE, FILE)
        assert await fc.exists(FILE)

    async def test_rename_root(self, fc):
        with pytest.raises(LinkFSError):
            await fc.rename("/", "/elsewhere")

    async def test_rename_file_over_directory(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(PathIsDirectoryError):
            await fc.rename(FILE, BASE_DIR2, overwrite=True)

    async def test_rename_directory_over_file(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(AlreadyExistsError):
            await fc.rename(BASE_DIR2, FILE, overwrite=True)

    async def test_rename_over_non_empty_directory(self, fc):
        await write_file(fc, f"{BASE_DIR2}/inside")
        with pytest.raises(DirectoryNotEmptyError):
            await fc.rename(BASE_DIR1, BASE_DIR2, overwrite=True)

    async def test_rename_dest_parent_missing(self, fc):
        await write_file(fc, FILE)
        with pytest.raises(ParentNotFoundError):
            await fc.rename(FILE, "/nowhere/file")

    async def test_rename_directory_with_contents(self, fc):
        await write_file(fc, FILE)
        await fc.rename(BASE_DIR1, "/moved")
        assert await fc.is_file("/moved/file")
        assert not await fc.exists(BASE_DIR1)


class TestListStatus:
    async def test_sorted_by_name(self, fc):
        for name in ("c", "a", "b"):
            await write_file(fc, f"{BASE_DIR1}/{name}", size=1)
        listed = await fc.list_status(BASE_DIR1)
        assert [s.path.name for s in listed] == ["a", "b", "c"]
        assert all(s.path.has_location for s in listed)

    async def test_missing(self, fc):
        with pytest.raises(PathNotFoundError):
            await fc.list_status("/nothing")


class TestSetTimes:
    async def test_ignored_timestamps_are_logged(self, fc, caplog):
        if fc.default_mount.capability.honors_explicit_timestamps:
            pytest.skip("backend honours explicit timestamps")
        await write_file(fc, FILE)
        with caplog.at_level(logging.DEBUG, logger="linkfs.fs.file_context"):
            await fc.set_times(FILE, None, None)
        assert "Ignoring set_times" in caplog.text
