"""Tests for directory traversal."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import List

import pytest

from ferret.errors import DirectoryUnreadable, EntryUnreadable, FerretError
from ferret.models import EntryKind, FilesystemEntry, FilterSpec, SizeRange
from ferret.search.pattern import compile_pattern
from ferret.search.walker import read_entry, walk


def touch(p: Path, data: bytes = b"") -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data)


def symlink(link: Path, target: Path) -> None:
    try:
        link.symlink_to(target)
    except (OSError, NotImplementedError):
        pytest.skip("symlink not supported")


def run(root: Path, spec: FilterSpec, errors: List[FerretError] | None = None) -> List[str]:
    matcher = compile_pattern(spec.pattern, spec.pattern_kind, spec.case_insensitive)
    on_error = errors.append if errors is not None else None
    return [entry.relative.as_posix() for entry in walk(root, spec, matcher, on_error=on_error)]


@pytest.fixture
def small_tree(tmp_path: Path) -> Path:
    touch(tmp_path / "a.txt", b"x" * 10)
    touch(tmp_path / "b.log", b"y" * 2000)
    touch(tmp_path / ".hidden", b"z" * 5)
    return tmp_path


class TestWalkScenarios:
    """End-to-end walks over small trees."""

    def test_glob_excludes_hidden(self, small_tree: Path) -> None:
        assert run(small_tree, FilterSpec(pattern="*.txt")) == ["a.txt"]

    def test_include_hidden_sorted(self, small_tree: Path) -> None:
        spec = FilterSpec(pattern="*", include_hidden=True)
        assert run(small_tree, spec) == [".hidden", "a.txt", "b.log"]

    def test_size_range(self, tmp_path: Path) -> None:
        touch(tmp_path / "small", b"x" * 500)
        touch(tmp_path / "medium", b"x" * 1500)
        touch(tmp_path / "large", b"x" * 20000)
        spec = FilterSpec(pattern="*", size_range=SizeRange(1024, 10 * 1024))
        assert run(tmp_path, spec) == ["medium"]

    def test_max_depth_one(self, tmp_path: Path) -> None:
        touch(tmp_path / "sub" / "deep" / "file.txt")
        assert run(tmp_path, FilterSpec(pattern="*", max_depth=1)) == ["sub"]

    def test_non_recursive_behaves_like_depth_one(self, tmp_path: Path) -> None:
        touch(tmp_path / "sub" / "deep" / "file.txt")
        assert run(tmp_path, FilterSpec(pattern="*", recursive=False)) == ["sub"]
        spec = FilterSpec(pattern="*", recursive=False, max_depth=5)
        assert run(tmp_path, spec) == ["sub"]

    def test_max_depth_zero_yields_nothing(self, tmp_path: Path) -> None:
        touch(tmp_path / "a.txt")
        assert run(tmp_path, FilterSpec(pattern="*", max_depth=0)) == []

    @pytest.mark.parametrize("max_depth", [1, 2, 3])
    def test_never_descends_past_max_depth(self, tmp_path: Path, max_depth: int) -> None:
        touch(tmp_path / "a" / "b" / "c" / "d" / "e.txt")
        matcher = compile_pattern("*")
        entries = list(walk(tmp_path, FilterSpec(pattern="*", max_depth=max_depth), matcher))
        assert len(entries) == max_depth
        assert max(entry.depth for entry in entries) == max_depth

    def test_depth_first_name_sorted_order(self, tmp_path: Path) -> None:
        touch(tmp_path / "b" / "z.txt")
        touch(tmp_path / "b" / "a.txt")
        touch(tmp_path / "a" / "c.txt")
        touch(tmp_path / "c.txt")
        assert run(tmp_path, FilterSpec(pattern="*")) == [
            "a",
            "a/c.txt",
            "b",
            "b/a.txt",
            "b/z.txt",
            "c.txt",
        ]

    def test_repeated_walks_are_identical(self, tmp_path: Path) -> None:
        for name in ["q", "w", "e", "r", "t", "y"]:
            touch(tmp_path / name / f"{name}.dat")
        spec = FilterSpec(pattern="*")
        assert run(tmp_path, spec) == run(tmp_path, spec)

    def test_pattern_does_not_stop_descent(self, tmp_path: Path) -> None:
        touch(tmp_path / "src" / "pkg" / "mod.py")
        assert run(tmp_path, FilterSpec(pattern="*.py")) == ["src/pkg/mod.py"]

    def test_path_glob(self, tmp_path: Path) -> None:
        touch(tmp_path / "docs" / "a.txt")
        touch(tmp_path / "src" / "a.txt")
        assert run(tmp_path, FilterSpec(pattern="docs/*.txt")) == ["docs/a.txt"]

    def test_type_filter(self, tmp_path: Path) -> None:
        touch(tmp_path / "sub" / "file.txt")
        spec = FilterSpec(pattern="*", type_filter=EntryKind.DIR)
        assert run(tmp_path, spec) == ["sub"]

    def test_age_filter(self, tmp_path: Path) -> None:
        old = tmp_path / "old.txt"
        touch(old)
        touch(tmp_path / "new.txt")
        ten_days_ago = time.time() - 10 * 86400
        os.utime(old, (ten_days_ago, ten_days_ago))
        assert run(tmp_path, FilterSpec(pattern="*.txt", max_age_days=7)) == ["new.txt"]

    def test_directories_report_zero_size(self, tmp_path: Path) -> None:
        touch(tmp_path / "sub" / "file.bin", b"x" * 42)
        entries = list(walk(tmp_path, FilterSpec(pattern="*"), compile_pattern("*")))
        sizes = {entry.name: entry.size for entry in entries}
        assert sizes == {"sub": 0, "file.bin": 42}

    def test_entry_paths_are_joined_to_root(self, tmp_path: Path) -> None:
        touch(tmp_path / "sub" / "file.txt")
        entries = list(walk(tmp_path, FilterSpec(pattern="file.txt"), compile_pattern("file.txt")))
        assert [entry.path for entry in entries] == [tmp_path / "sub" / "file.txt"]
        assert entries[0].depth == 2


class TestHiddenPruning:
    """Hidden directories are pruned from both emission and descent."""

    def test_hidden_directory_not_descended(self, tmp_path: Path) -> None:
        touch(tmp_path / ".git" / "config")
        touch(tmp_path / "config")
        assert run(tmp_path, FilterSpec(pattern="config")) == ["config"]

    def test_hidden_directory_included(self, tmp_path: Path) -> None:
        touch(tmp_path / ".git" / "config")
        spec = FilterSpec(pattern="config", include_hidden=True)
        assert run(tmp_path, spec) == [".git/config"]

    def test_hidden_root_is_walked(self, tmp_path: Path) -> None:
        root = tmp_path / ".config"
        touch(root / "settings.toml")
        assert run(root, FilterSpec(pattern="*.toml")) == ["settings.toml"]


class TestSymlinks:
    """Symlink policy and cycle safety."""

    def test_symlinks_not_followed_by_default(self, tmp_path: Path) -> None:
        touch(tmp_path / "real" / "f.txt")
        symlink(tmp_path / "alias", tmp_path / "real")
        entries = list(walk(tmp_path, FilterSpec(pattern="*"), compile_pattern("*")))
        kinds = {entry.relative.as_posix(): entry.kind for entry in entries}
        assert kinds == {
            "alias": EntryKind.SYMLINK,
            "real": EntryKind.DIR,
            "real/f.txt": EntryKind.FILE,
        }

    def test_symlink_type_filter(self, tmp_path: Path) -> None:
        touch(tmp_path / "target.txt")
        symlink(tmp_path / "link.txt", tmp_path / "target.txt")
        spec = FilterSpec(pattern="*", type_filter=EntryKind.SYMLINK)
        assert run(tmp_path, spec) == ["link.txt"]

    def test_follow_descends_into_linked_directory(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        touch(tmp_path / "elsewhere" / "f.txt")
        root.mkdir()
        symlink(root / "alias", tmp_path / "elsewhere")
        spec = FilterSpec(pattern="*", follow_symlinks=True)
        assert run(root, spec) == ["alias", "alias/f.txt"]

    def test_follow_reports_target_kind(self, tmp_path: Path) -> None:
        touch(tmp_path / "target.txt", b"abc")
        symlink(tmp_path / "link.txt", tmp_path / "target.txt")
        spec = FilterSpec(pattern="link.txt", follow_symlinks=True)
        entries = list(walk(tmp_path, spec, compile_pattern("link.txt")))
        assert [(entry.kind, entry.size) for entry in entries] == [(EntryKind.FILE, 3)]

    def test_cycle_is_not_reentered(self, tmp_path: Path) -> None:
        touch(tmp_path / "dir" / "file.txt")
        symlink(tmp_path / "dir" / "loop", tmp_path)
        spec = FilterSpec(pattern="*", follow_symlinks=True)
        assert run(tmp_path, spec) == ["dir", "dir/file.txt", "dir/loop"]

    def test_same_target_descended_once(self, tmp_path: Path) -> None:
        touch(tmp_path / "real" / "f.txt")
        symlink(tmp_path / "alias", tmp_path / "real")
        spec = FilterSpec(pattern="*", follow_symlinks=True)
        result = run(tmp_path, spec)
        assert result == ["alias", "alias/f.txt", "real"]

    def test_dangling_symlink_reported_without_follow(self, tmp_path: Path) -> None:
        symlink(tmp_path / "broken", tmp_path / "missing")
        assert run(tmp_path, FilterSpec(pattern="*")) == ["broken"]

    def test_dangling_symlink_skipped_when_following(self, tmp_path: Path) -> None:
        touch(tmp_path / "ok.txt")
        symlink(tmp_path / "broken", tmp_path / "missing")
        errors: List[FerretError] = []
        spec = FilterSpec(pattern="*", follow_symlinks=True)
        assert run(tmp_path, spec, errors) == ["ok.txt"]
        assert len(errors) == 1
        assert isinstance(errors[0], EntryUnreadable)
        assert errors[0].path == tmp_path / "broken"


class TestResilience:
    """Unreadable paths are skipped without aborting the walk."""

    def test_unreadable_directory_is_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        touch(tmp_path / "a" / "visible.txt")
        touch(tmp_path / "b" / "secret.txt")
        touch(tmp_path / "c" / "visible.txt")
        real_listdir = os.listdir
        blocked = tmp_path / "b"

        def fake_listdir(path: os.PathLike[str] | str) -> list[str]:
            if Path(path) == blocked:
                raise PermissionError(13, "Permission denied")
            return real_listdir(path)

        monkeypatch.setattr("ferret.search.walker.os.listdir", fake_listdir)
        errors: List[FerretError] = []
        result = run(tmp_path, FilterSpec(pattern="*.txt"), errors)

        assert result == ["a/visible.txt", "c/visible.txt"]
        assert len(errors) == 1
        assert isinstance(errors[0], DirectoryUnreadable)
        assert "Permission denied" in str(errors[0])

    def test_vanished_entry_is_skipped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        touch(tmp_path / "a.txt")
        touch(tmp_path / "b.txt")
        real_lstat = os.lstat

        def fake_lstat(path: os.PathLike[str] | str, *args: object, **kwargs: object):
            if Path(path).name == "a.txt":
                raise FileNotFoundError(2, "No such file or directory")
            return real_lstat(path, *args, **kwargs)

        monkeypatch.setattr("ferret.search.walker.os.lstat", fake_lstat)
        errors: List[FerretError] = []
        assert run(tmp_path, FilterSpec(pattern="*"), errors) == ["b.txt"]
        assert isinstance(errors[0], EntryUnreadable)

    def test_missing_root(self, tmp_path: Path) -> None:
        errors: List[FerretError] = []
        assert run(tmp_path / "nope", FilterSpec(pattern="*"), errors) == []
        assert isinstance(errors[0], DirectoryUnreadable)

    def test_file_root(self, tmp_path: Path) -> None:
        touch(tmp_path / "file.txt")
        errors: List[FerretError] = []
        assert run(tmp_path / "file.txt", FilterSpec(pattern="*"), errors) == []
        assert "not a directory" in str(errors[0])

    def test_errors_are_logged_by_default(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("WARNING"):
            assert list(walk(tmp_path / "nope", FilterSpec(pattern="*"), compile_pattern("*"))) == []
        assert "cannot read directory" in caplog.text


class TestReadEntry:
    """Test read_entry helper."""

    def test_file_entry(self, tmp_path: Path) -> None:
        touch(tmp_path / "data.bin", b"1234")
        entry, _ = read_entry(tmp_path / "data.bin", Path("data.bin"), 1)
        assert isinstance(entry, FilesystemEntry)
        assert entry.kind is EntryKind.FILE
        assert entry.size == 4
        assert entry.mtime is not None
