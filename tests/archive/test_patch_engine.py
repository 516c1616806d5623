"""Tests for in-place archive patching."""

from __future__ import annotations

import os
import stat
import zipfile
from pathlib import Path

import pytest

from zipwatch.archive import patch_archive, temp_path_for
from zipwatch.archive import patcher as patcher_module
from zipwatch.archive.writer import ArchiveWriter
from zipwatch.exceptions import ArchiveIOError, ArchiveOpenError
from zipwatch.watcher.suppression import SuppressionCache


def test_patch_replaces_matching_entry(make_archive, entries_of, payloads) -> None:
    archive = make_archive(
        "app.jar",
        [
            ("META-INF/MANIFEST.MF", b"Manifest-Version: 1.0\n"),
            ("a/test.txt", b"X"),
            ("com/example/Main.class", b"\xca\xfe\xba\xbe" + b"\x00" * 64),
        ],
    )

    result = patch_archive(archive, payloads)

    assert result.replaced == ("a/test.txt",)
    assert result.added == ()
    assert result.copied == 2
    assert result.entry_count == 3
    entries = entries_of(archive)
    assert entries["a/test.txt"] == b"HELLO"
    assert entries["META-INF/MANIFEST.MF"] == b"Manifest-Version: 1.0\n"
    assert entries["com/example/Main.class"] == b"\xca\xfe\xba\xbe" + b"\x00" * 64


def test_patch_appends_missing_entry(make_archive, entries_of) -> None:
    archive = make_archive("lib.zip", [("one.txt", b"1"), ("two.txt", b"2")])

    result = patch_archive(archive, {"nested/new.txt": b"fresh"})

    assert result.added == ("nested/new.txt",)
    entries = entries_of(archive)
    assert entries == {"one.txt": b"1", "two.txt": b"2", "nested/new.txt": b"fresh"}


def test_patch_entry_set_matches_union(make_archive, entries_of) -> None:
    archive = make_archive("mix.jar", [("keep.txt", b"k"), ("a/test.txt", b"X"), ("b/test.txt", b"Y")])
    overrides = {"a/test.txt": b"A", "b/test.txt": b"B", "c/test.txt": b"C"}

    patch_archive(archive, overrides)

    entries = entries_of(archive)
    assert len(entries) == 1 + len(overrides)
    assert entries == {"keep.txt": b"k", **overrides}


def test_unmatched_entries_are_copied_raw(make_archive, raw_entry_of, payloads) -> None:
    archive = make_archive("raw.jar", [("big.txt", b"abcdefgh" * 500), ("a/test.txt", b"X")])
    with zipfile.ZipFile(archive) as before:
        original = before.getinfo("big.txt")
        original_raw = raw_entry_of(archive, original)

    patch_archive(archive, payloads)

    with zipfile.ZipFile(archive) as after:
        copied = after.getinfo("big.txt")
        assert copied.compress_size == original.compress_size
        assert copied.date_time == original.date_time
        assert raw_entry_of(archive, copied) == original_raw


def test_replaced_entry_keeps_original_metadata(make_archive, payloads) -> None:
    archive = make_archive("meta.jar", [("a/test.txt", b"X", zipfile.ZIP_STORED)])

    patch_archive(archive, payloads)

    with zipfile.ZipFile(archive) as after:
        info = after.getinfo("a/test.txt")
        assert info.compress_type == zipfile.ZIP_STORED
        assert info.date_time == (2021, 6, 1, 12, 30, 44)
        assert info.external_attr == 0o100600 << 16


def test_duplicate_entries_first_match_wins(make_archive, payloads) -> None:
    archive = make_archive("dup.jar", [("a/test.txt", b"first"), ("a/test.txt", b"second")])

    result = patch_archive(archive, payloads)

    assert result.replaced == ("a/test.txt",)
    with zipfile.ZipFile(archive) as after:
        infos = after.infolist()
        assert [after.read(info) for info in infos] == [b"HELLO", b"second"]


def test_patch_is_idempotent_on_its_own_output(make_archive, payloads) -> None:
    archive = make_archive("again.jar", [("keep.txt", b"k")])
    overrides = {**payloads, "b/test.txt": b"WORLD"}

    patch_archive(archive, overrides)
    first = archive.read_bytes()
    patch_archive(archive, overrides)

    assert archive.read_bytes() == first


def test_patching_identical_archives_gives_identical_output(make_archive, payloads) -> None:
    entries = [("keep.txt", b"k"), ("a/test.txt", b"X")]
    left = make_archive("left.jar", entries)
    right = make_archive("right.jar", entries)

    patch_archive(left, {**payloads, "new.txt": b"n"})
    patch_archive(right, {**payloads, "new.txt": b"n"})

    assert left.read_bytes() == right.read_bytes()


def test_patch_preserves_comment_and_mode(make_archive, payloads) -> None:
    archive = make_archive("mode.jar", [("a/test.txt", b"X")], comment=b"release build")
    os.chmod(archive, 0o640)

    patch_archive(archive, payloads)

    assert stat.S_IMODE(archive.stat().st_mode) == 0o640
    with zipfile.ZipFile(archive) as after:
        assert after.comment == b"release build"


def test_patch_marks_suppression_before_rename(make_archive, payloads, monkeypatch: pytest.MonkeyPatch) -> None:
    archive = make_archive("mark.jar", [("a/test.txt", b"X")])
    cache = SuppressionCache()
    real_replace = os.replace
    seen: list[bool] = []

    def _replace(src: os.PathLike[str], dst: os.PathLike[str]) -> None:
        seen.append(cache.should_ignore(dst))
        real_replace(src, dst)

    monkeypatch.setattr(patcher_module.os, "replace", _replace)

    patch_archive(archive, payloads, suppression=cache)

    assert seen == [True]
    assert cache.should_ignore(archive)


def test_failed_rename_leaves_original_and_clears_marker(
    make_archive, payloads, monkeypatch: pytest.MonkeyPatch
) -> None:
    archive = make_archive("rename.jar", [("a/test.txt", b"X")])
    before = archive.read_bytes()
    cache = SuppressionCache()

    def _replace(src: os.PathLike[str], dst: os.PathLike[str]) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(patcher_module.os, "replace", _replace)

    with pytest.raises(ArchiveIOError, match="Failed to replace"):
        patch_archive(archive, payloads, suppression=cache)

    assert archive.read_bytes() == before
    assert not temp_path_for(archive).exists()
    assert not cache.should_ignore(archive)


def test_failure_mid_copy_leaves_original_untouched(
    make_archive, payloads, monkeypatch: pytest.MonkeyPatch
) -> None:
    archive = make_archive("midcopy.jar", [("keep.txt", b"k"), ("a/test.txt", b"X")])
    before = archive.read_bytes()
    cache = SuppressionCache()

    def _copy_entry(self: ArchiveWriter, info: zipfile.ZipInfo, source: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(ArchiveWriter, "copy_entry", _copy_entry)

    with pytest.raises(ArchiveIOError, match="disk full"):
        patch_archive(archive, payloads, suppression=cache)

    assert archive.read_bytes() == before
    assert not temp_path_for(archive).exists()
    assert len(cache) == 0


def test_invalid_archive_raises_open_error(tmp_path: Path, payloads) -> None:
    archive = tmp_path / "partial.jar"
    archive.write_bytes(b"PK\x03\x04 not finished yet")

    with pytest.raises(ArchiveOpenError):
        patch_archive(archive, payloads)

    assert archive.read_bytes() == b"PK\x03\x04 not finished yet"
    assert not temp_path_for(archive).exists()


def test_missing_archive_raises_open_error(tmp_path: Path, payloads) -> None:
    with pytest.raises(ArchiveOpenError):
        patch_archive(tmp_path / "gone.jar", payloads)


def test_temp_path_is_hidden_sibling(tmp_path: Path) -> None:
    assert temp_path_for(tmp_path / "app.jar") == tmp_path / ".app.jar.swp"
