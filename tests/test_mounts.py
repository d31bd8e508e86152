"""Tests for MountRegistry, MountConfig and session_for."""

from __future__ import annotations

import pytest

from linkfs.fs.capabilities import distributed_capability, local_capability
from linkfs.fs.exceptions import MountNotFoundError, UnsupportedAuthorityError
from linkfs.fs.mounts import MountConfig, MountRegistry, session_for
from linkfs.fs.paths import normalize


class FakeBackend:
    """Minimal stand-in carrying only a capability."""

    def __init__(self, capability):
        self.capability = capability


class FakeSession:
    def __init__(self):
        self.committed = False
        self.rolled_back = False
        self.closed = False

    async def commit(self):
        self.committed = True

    async def rollback(self):
        self.rolled_back = True

    async def close(self):
        self.closed = True


def _local() -> MountConfig:
    return MountConfig(backend=FakeBackend(local_capability()))


def _remote(authority: str = "nn:8020") -> MountConfig:
    return MountConfig(backend=FakeBackend(distributed_capability(authority)))


# ---------------------------------------------------------------------------
# MountConfig
# ---------------------------------------------------------------------------


class TestMountConfig:
    def test_default_label(self):
        assert _local().label == "file:///"
        assert _remote().label == "lfs://nn:8020/"

    def test_custom_label(self):
        cfg = MountConfig(backend=FakeBackend(local_capability()), label="Scratch")
        assert cfg.label == "Scratch"

    def test_key(self):
        assert _local().key == ("file", None)
        assert _remote().key == ("lfs", "nn:8020")

    def test_session_factory(self):
        assert not _local().has_session_factory
        cfg = MountConfig(backend=FakeBackend(local_capability()), session_factory=FakeSession)
        assert cfg.has_session_factory


# ---------------------------------------------------------------------------
# MountRegistry
# ---------------------------------------------------------------------------


class TestMountRegistry:
    def test_add_and_get(self):
        reg = MountRegistry()
        local = _local()
        reg.add_mount(local)
        assert reg.get("file") is local
        assert reg.get("FILE") is local
        assert reg.has_mount("file")
        assert not reg.has_mount("lfs", "nn:8020")

    def test_remove(self):
        reg = MountRegistry()
        remote = _remote()
        reg.add_mount(remote)
        assert reg.remove_mount("lfs", "nn:8020") is remote
        assert reg.remove_mount("lfs", "nn:8020") is None
        assert reg.list_mounts() == []

    def test_list_sorted_by_label(self):
        reg = MountRegistry()
        reg.add_mount(_remote("b"))
        reg.add_mount(_local())
        reg.add_mount(_remote("a"))
        assert [m.label for m in reg.list_mounts()] == [
            "file:///",
            "lfs://a/",
            "lfs://b/",
        ]

    def test_lookup_exact(self):
        reg = MountRegistry()
        remote = _remote()
        reg.add_mount(remote)
        reg.add_mount(_local())
        assert reg.lookup(normalize("lfs://nn:8020/a")) is remote

    def test_lookup_local_without_authority(self):
        reg = MountRegistry()
        local = _local()
        reg.add_mount(local)
        assert reg.lookup(normalize("file:///a/b")) is local

    def test_lookup_unknown_authority(self):
        reg = MountRegistry()
        reg.add_mount(_remote())
        with pytest.raises(MountNotFoundError, match="other:1"):
            reg.lookup(normalize("lfs://other:1/a"))

    def test_lookup_scheme_requiring_authority(self):
        reg = MountRegistry()
        reg.add_mount(_remote())
        with pytest.raises(UnsupportedAuthorityError, match="requires an authority"):
            reg.lookup(normalize("lfs:///a"))

    def test_lookup_authority_without_scheme(self):
        reg = MountRegistry()
        reg.add_mount(_remote())
        with pytest.raises(UnsupportedAuthorityError, match="No file system for scheme: None"):
            reg.lookup(normalize("//nn:8020/a"))

    def test_lookup_unknown_scheme(self):
        reg = MountRegistry()
        reg.add_mount(_local())
        with pytest.raises(MountNotFoundError):
            reg.lookup(normalize("s3://bucket/a"))

    def test_lookup_without_scheme(self):
        reg = MountRegistry()
        reg.add_mount(_local())
        with pytest.raises(MountNotFoundError):
            reg.lookup(normalize("/a"))

    def test_lookup_error_names_original(self):
        reg = MountRegistry()
        original = normalize("file:///link")
        with pytest.raises(MountNotFoundError, match="file:///link"):
            reg.lookup(normalize("s3://bucket/a"), original)


# ---------------------------------------------------------------------------
# session_for
# ---------------------------------------------------------------------------


class TestSessionFor:
    async def test_no_factory_yields_none(self):
        async with session_for(_local()) as sess:
            assert sess is None

    async def test_commit_and_close(self):
        sessions = []

        def factory():
            sessions.append(FakeSession())
            return sessions[-1]

        cfg = MountConfig(backend=FakeBackend(local_capability()), session_factory=factory)
        async with session_for(cfg) as sess:
            assert sess is sessions[0]
        assert sessions[0].committed
        assert sessions[0].closed
        assert not sessions[0].rolled_back

    async def test_rollback_on_error(self):
        session = FakeSession()
        cfg = MountConfig(
            backend=FakeBackend(local_capability()), session_factory=lambda: session
        )
        with pytest.raises(RuntimeError):
            async with session_for(cfg):
                raise RuntimeError("boom")
        assert session.rolled_back
        assert session.closed
        assert not session.committed
