"""Tests for QualifiedPath parsing, normalization and qualification."""

from __future__ import annotations

import pytest

from linkfs.fs.capabilities import distributed_capability, local_capability
from linkfs.fs.context import ResolutionContext
from linkfs.fs.exceptions import InvalidPathError
from linkfs.fs.paths import (
    QualifiedPath,
    as_path,
    make_absolute,
    normalize,
    qualify,
    validate_path,
)

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_absolute(self):
        p = normalize("/a/b")
        assert p == QualifiedPath(segments=("a", "b"))
        assert p.absolute
        assert not p.has_location

    def test_fully_qualified(self):
        p = normalize("lfs://nn:8020/a/b")
        assert p.scheme == "lfs"
        assert p.authority == "nn:8020"
        assert p.segments == ("a", "b")
        assert p.is_qualified

    def test_scheme_is_lower_cased(self):
        assert normalize("LFS://nn/a").scheme == "lfs"

    def test_scheme_without_authority(self):
        p = normalize("file:///a")
        assert p.scheme == "file"
        assert p.authority is None
        assert p.is_partially_qualified
        assert str(p) == "file:///a"

    def test_authority_without_scheme(self):
        p = normalize("//nn:8020/a")
        assert p.scheme is None
        assert p.authority == "nn:8020"
        assert p.is_partially_qualified
        assert str(p) == "//nn:8020/a"

    def test_relative(self):
        p = normalize("a/b")
        assert not p.absolute
        assert str(p) == "a/b"

    def test_colon_in_segment_is_not_a_scheme(self):
        p = normalize("a:b/c")
        assert p.scheme is None
        assert p.segments == ("a:b", "c")

    def test_root(self):
        p = normalize("/")
        assert p.is_root
        assert p.parent() is None
        assert str(p) == "/"

    def test_qualified_root(self):
        p = normalize("lfs://nn:8020")
        assert p.is_root
        assert str(p) == "lfs://nn:8020/"

    def test_parse_classmethod(self):
        assert QualifiedPath.parse("/x") == normalize("/x")


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("/a/./b/../c", "/a/c"),
            ("/a//b/", "/a/b"),
            ("/..", "/"),
            ("/a/b/..", "/a"),
            ("../file", "../file"),
            ("a/../../b", "../b"),
            ("./a", "a"),
        ],
    )
    def test_collapse(self, raw, expected):
        assert str(normalize(raw)) == expected

    @pytest.mark.parametrize("raw", ["", ".", "a/..", "./"])
    def test_empty_relative_is_invalid(self, raw):
        with pytest.raises(InvalidPathError):
            normalize(raw)

    def test_none_is_invalid(self):
        with pytest.raises(InvalidPathError):
            normalize(None)

    def test_invalid_path_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalize("")

    def test_null_byte(self):
        with pytest.raises(InvalidPathError, match="null"):
            normalize("/a\x00b")

    def test_long_segment(self):
        with pytest.raises(InvalidPathError, match="segment too long"):
            normalize("/" + "x" * 256)

    def test_validate_path(self):
        assert validate_path("/ok") == (True, "")
        ok, msg = validate_path("/a\x01")
        assert not ok
        assert "control character" in msg
        ok, msg = validate_path("/" + "a/" * 3000)
        assert not ok
        assert "too long" in msg

    def test_as_path_passthrough(self):
        p = normalize("/x")
        assert as_path(p) is p
        assert as_path("/x") == p


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


class TestNavigation:
    def test_parent_keeps_location(self):
        p = normalize("lfs://nn/a/b")
        assert p.parent() == normalize("lfs://nn/a")

    def test_relative_single_segment_has_no_parent(self):
        assert normalize("a").parent() is None

    def test_child_collapses_dot_dot(self):
        p = normalize("/a/b")
        assert p.child("..", "c") == normalize("/a/c")

    def test_join_relative(self):
        assert normalize("/a/b").join(normalize("../c")) == normalize("/a/c")

    def test_join_absolute_wins(self):
        assert normalize("lfs://nn/a").join(normalize("/x")) == normalize("/x")

    def test_join_located_wins(self):
        other = normalize("file:///x")
        assert normalize("/a").join(other) is other

    def test_name(self):
        assert normalize("/a/b").name == "b"
        assert normalize("/").name == ""

    def test_is_ancestor_of(self):
        a = normalize("lfs://nn/a")
        assert a.is_ancestor_of(normalize("lfs://nn/a/b/c"))
        assert not a.is_ancestor_of(a)
        assert not a.is_ancestor_of(normalize("lfs://other/a/b"))
        assert not a.is_ancestor_of(normalize("lfs://nn/ab"))

    def test_without_location(self):
        assert normalize("lfs://nn/a").without_location() == normalize("/a")


# ---------------------------------------------------------------------------
# Qualification
# ---------------------------------------------------------------------------


class TestQualify:
    def _ctx(self, cap, wd="/"):
        root = normalize(wd).with_location(cap.default_scheme, cap.default_authority)
        return ResolutionContext(root, cap)

    def test_unqualified_absolute_gets_defaults(self):
        ctx = self._ctx(distributed_capability("nn:8020"))
        assert qualify(normalize("/a"), ctx) == normalize("lfs://nn:8020/a")

    def test_local_defaults(self):
        ctx = self._ctx(local_capability())
        assert qualify(normalize("/a"), ctx) == normalize("file:///a")

    def test_partially_qualified_unchanged(self):
        ctx = self._ctx(distributed_capability("nn:8020"))
        p = normalize("lfs:///a")
        assert qualify(p, ctx) is p
        q = normalize("//nn:8020/a")
        assert qualify(q, ctx) is q

    def test_relative_unchanged(self):
        ctx = self._ctx(distributed_capability("nn:8020"))
        p = normalize("a")
        assert qualify(p, ctx) is p

    def test_make_absolute_joins_working_directory(self):
        ctx = self._ctx(distributed_capability("nn:8020"), "/home/u")
        assert make_absolute(normalize("../x"), ctx) == normalize("lfs://nn:8020/home/x")

    def test_make_absolute_leaves_absolute(self):
        ctx = self._ctx(local_capability(), "/home")
        p = normalize("/x")
        assert make_absolute(p, ctx) is p
