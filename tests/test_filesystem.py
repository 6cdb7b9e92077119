"""Tests for the storage backend abstraction and the local backend."""

import errno
import io
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

from filesync.config import BackendType
from filesync.filesystem import (
    BackendMismatchError,
    CopyProgress,
    DirectoryHandle,
    FileHandle,
    FileSystemBackend,
    FileSystemFactory,
    LocalDirectoryHandle,
    LocalFileHandle,
    LocalFileSystem,
)
from filesync.filesystem.base import error_category


class MemoryFileHandle(FileHandle):
    """File held in memory, used as a foreign copy source."""

    def __init__(self, name: str, data: bytes):
        self._name = name
        self.data = data

    @property
    def name(self):
        return self._name

    @property
    def full_name(self):
        return f"memory://{self._name}"

    @property
    def exists(self):
        return True

    @property
    def length(self):
        return len(self.data)

    @property
    def last_write_time(self):
        return datetime(2024, 1, 1, tzinfo=timezone.utc)

    @property
    def directory(self):
        raise NotImplementedError


class MemorySource(FileSystemBackend):
    """Read-only backend serving MemoryFileHandle contents."""

    def resolve_file(self, path):
        raise NotImplementedError

    def resolve_directory(self, path):
        raise NotImplementedError

    def file_exists(self, path):
        return False

    def directory_exists(self, path):
        return False

    def open_read_stream(self, file):
        return io.BytesIO(file.data)

    def delete_file(self, file):
        return False

    def create_directory(self, source_directory, target_directory):
        return False

    def delete_directory(self, directory):
        return False

    def copy_file(self, source_backend, source_file, target_directory):
        return False


class FailingWriter:
    """Writes the first ``limit`` bytes to a real file, then fails."""

    def __init__(self, path: Path, limit: int):
        self._file = open(path, "wb")
        self._limit = limit

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self._file.close()
        return False

    def write(self, data: bytes):
        self._file.write(data[:self._limit])
        self._file.flush()
        raise OSError(errno.EIO, "simulated write failure")


class TestHandles:
    """Test local file and directory handles."""

    def test_handles_for_missing_paths_are_valid(self, tmp_path):
        """Resolving a path that does not exist is not an error."""
        backend = LocalFileSystem()

        file = backend.resolve_file(str(tmp_path / "missing.txt"))
        directory = backend.resolve_directory(str(tmp_path / "missing"))

        assert file.name == "missing.txt"
        assert file.exists is False
        assert directory.name == "missing"
        assert directory.exists is False
        assert backend.file_exists(file.full_name) is False
        assert backend.directory_exists(directory.full_name) is False

    def test_handles_observe_existing_paths(self, tmp_path):
        """Existence and metadata are read from disk."""
        (tmp_path / "data.bin").write_bytes(b"x" * 42)
        backend = LocalFileSystem()

        file = backend.resolve_file(str(tmp_path / "data.bin"))

        assert file.exists is True
        assert file.length == 42
        assert file.last_write_time.tzinfo is not None
        assert file.directory == LocalDirectoryHandle(tmp_path)
        assert backend.file_exists(file.full_name) is True
        assert backend.directory_exists(str(tmp_path)) is True
        assert backend.file_exists(str(tmp_path)) is False

    def test_directory_listing(self, tmp_path):
        """Files and directories are listed separately and sorted."""
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "sub2").mkdir()
        (tmp_path / "sub1").mkdir()

        directory = LocalDirectoryHandle(tmp_path)

        assert [f.name for f in directory.get_files()] == ["a.txt", "b.txt"]
        assert [d.name for d in directory.get_directories()] == ["sub1", "sub2"]
        assert directory.child_file("a.txt").exists
        assert directory.child_directory("sub1").parent == directory
        assert LocalDirectoryHandle(Path(tmp_path.anchor)).parent is None

    def test_listing_missing_directory_raises(self, tmp_path):
        """Enumeration failures surface as OSError to the caller."""
        with pytest.raises(OSError):
            LocalDirectoryHandle(tmp_path / "missing").get_files()

    def test_handle_equality(self, tmp_path):
        """Handles for the same path compare equal."""
        assert LocalFileHandle(tmp_path / "x") == LocalFileHandle(tmp_path / "x")
        assert LocalFileHandle(tmp_path / "x") != LocalDirectoryHandle(tmp_path / "x")
        assert len({LocalDirectoryHandle(tmp_path), LocalDirectoryHandle(tmp_path)}) == 1


class TestLocalFileSystemMutations:
    """Test create and delete operations of the local backend."""

    def setup_method(self):
        """Set up test fixtures."""
        self.backend = LocalFileSystem()

    def test_delete_file(self, tmp_path):
        """Deleting an existing file succeeds."""
        path = tmp_path / "file.txt"
        path.write_text("content")

        assert self.backend.delete_file(LocalFileHandle(path)) is True
        assert not path.exists()

    def test_delete_read_only_file(self, tmp_path):
        """The read-only flag is cleared before deletion."""
        path = tmp_path / "locked.txt"
        path.write_text("content")
        os.chmod(path, stat.S_IREAD)

        assert self.backend.delete_file(LocalFileHandle(path)) is True
        assert not path.exists()

    def test_failed_delete_keeps_permissions(self, tmp_path, monkeypatch):
        """A file that cannot be removed keeps its original mode."""
        path = tmp_path / "shared.txt"
        path.write_text("content")
        os.chmod(path, 0o640)

        def refuse(name):
            raise PermissionError(errno.EACCES, "Permission denied", name)

        monkeypatch.setattr(os, "remove", refuse)

        assert self.backend.delete_file(LocalFileHandle(path)) is False
        assert path.exists()
        assert stat.S_IMODE(path.stat().st_mode) == 0o640

    def test_read_only_flag_clear_only_adds_owner_write(self, tmp_path, monkeypatch):
        """Clearing the read-only flag leaves group and other bits alone."""
        path = tmp_path / "locked.txt"
        path.write_text("content")
        os.chmod(path, 0o444)

        def refuse(name):
            raise PermissionError(errno.EACCES, "Permission denied", name)

        monkeypatch.setattr(os, "remove", refuse)

        assert self.backend.delete_file(LocalFileHandle(path)) is False
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_delete_missing_file_returns_false(self, tmp_path):
        """A missing file is reported, not raised."""
        assert self.backend.delete_file(LocalFileHandle(tmp_path / "nope.txt")) is False

    def test_create_directory(self, tmp_path):
        """A directory named after the source is created in the target."""
        source = LocalDirectoryHandle(tmp_path / "src" / "photos")
        target = LocalDirectoryHandle(tmp_path)

        assert self.backend.create_directory(source, target) is True
        assert (tmp_path / "photos").is_dir()

    def test_create_directory_in_missing_parent_returns_false(self, tmp_path):
        """A missing target directory is reported, not raised."""
        source = LocalDirectoryHandle(tmp_path / "photos")
        target = LocalDirectoryHandle(tmp_path / "missing")

        assert self.backend.create_directory(source, target) is False
        assert not (tmp_path / "missing").exists()

    def test_delete_directory_is_recursive(self, tmp_path):
        """Directories are deleted with their contents."""
        root = tmp_path / "tree"
        (root / "a" / "b").mkdir(parents=True)
        (root / "a" / "b" / "file.txt").write_text("x")

        assert self.backend.delete_directory(LocalDirectoryHandle(root)) is True
        assert not root.exists()

    def test_delete_missing_directory_returns_false(self, tmp_path):
        """A missing directory is reported, not raised."""
        assert self.backend.delete_directory(LocalDirectoryHandle(tmp_path / "nope")) is False

    def test_foreign_handles_are_rejected(self, tmp_path):
        """Handles of another backend type are a contract violation."""
        foreign_directory = Mock(spec=DirectoryHandle)
        foreign_file = Mock(spec=FileHandle)

        with pytest.raises(BackendMismatchError):
            self.backend.delete_directory(foreign_directory)
        with pytest.raises(BackendMismatchError):
            self.backend.delete_file(foreign_file)
        with pytest.raises(BackendMismatchError):
            self.backend.create_directory(LocalDirectoryHandle(tmp_path), foreign_directory)
        with pytest.raises(BackendMismatchError):
            self.backend.copy_file(
                self.backend, LocalFileHandle(tmp_path / "x"), foreign_directory
            )


class TestCopyFile:
    """Test chunked file copies."""

    def setup_method(self):
        """Set up test fixtures."""
        self.progress = []

    def _backend(self, chunk_size=None):
        backend = LocalFileSystem(chunk_size=chunk_size)
        backend.file_copy_progress_changed.connect(self.progress.append)
        return backend

    def test_copy_between_backends(self, tmp_path):
        """A copy produces an identical file and reports progress per chunk."""
        source_dir = tmp_path / "source"
        target_dir = tmp_path / "target"
        source_dir.mkdir()
        target_dir.mkdir()
        data = os.urandom(1000)
        (source_dir / "blob.bin").write_bytes(data)

        source_backend = LocalFileSystem()
        target_backend = self._backend(chunk_size=300)

        copied = target_backend.copy_file(
            source_backend,
            source_backend.resolve_file(str(source_dir / "blob.bin")),
            target_backend.resolve_directory(str(target_dir))
        )

        assert copied is True
        assert (target_dir / "blob.bin").read_bytes() == data
        assert [p.bytes_current for p in self.progress] == [300, 600, 900, 1000]
        assert all(p.bytes_total == 1000 for p in self.progress)
        assert self.progress[-1].percent == 100.0
        assert self.progress[0].file.name == "blob.bin"

    def test_copy_from_foreign_backend(self, tmp_path):
        """The read side may be any backend."""
        source = MemoryFileHandle("note.txt", b"hello world")
        target_backend = self._backend()

        copied = target_backend.copy_file(
            MemorySource(), source, LocalDirectoryHandle(tmp_path)
        )

        assert copied is True
        assert (tmp_path / "note.txt").read_bytes() == b"hello world"
        assert self.progress[-1].bytes_current == 11

    def test_copy_overwrites_existing_file(self, tmp_path):
        """An existing target file is replaced."""
        (tmp_path / "note.txt").write_bytes(b"a much longer previous content")
        target_backend = self._backend()

        copied = target_backend.copy_file(
            MemorySource(), MemoryFileHandle("note.txt", b"new"), LocalDirectoryHandle(tmp_path)
        )

        assert copied is True
        assert (tmp_path / "note.txt").read_bytes() == b"new"

    def test_copy_empty_file(self, tmp_path):
        """Empty files are created without progress notifications."""
        target_backend = self._backend()

        copied = target_backend.copy_file(
            MemorySource(), MemoryFileHandle("empty", b""), LocalDirectoryHandle(tmp_path)
        )

        assert copied is True
        assert (tmp_path / "empty").read_bytes() == b""
        assert self.progress == []

    def test_failed_write_removes_partial_file(self, tmp_path, monkeypatch):
        """A write failing after 100 of 500 bytes leaves no target file behind."""
        target_backend = self._backend()
        monkeypatch.setattr(
            target_backend, "_open_target_stream", lambda path: FailingWriter(path, 100)
        )

        copied = target_backend.copy_file(
            MemorySource(), MemoryFileHandle("big.bin", b"z" * 500), LocalDirectoryHandle(tmp_path)
        )

        assert copied is False
        assert target_backend.file_exists(str(tmp_path / "big.bin")) is False
        assert self.progress == []

    def test_missing_source_returns_false(self, tmp_path):
        """An unreadable source is reported and nothing is created."""
        backend = self._backend()
        (tmp_path / "target").mkdir()

        copied = backend.copy_file(
            backend,
            LocalFileHandle(tmp_path / "missing.txt"),
            LocalDirectoryHandle(tmp_path / "target")
        )

        assert copied is False
        assert list((tmp_path / "target").iterdir()) == []

    def test_missing_target_directory_returns_false(self, tmp_path):
        """A target directory that does not exist is reported, not raised."""
        backend = self._backend()

        copied = backend.copy_file(
            MemorySource(), MemoryFileHandle("a", b"abc"), LocalDirectoryHandle(tmp_path / "nope")
        )

        assert copied is False

    def test_default_chunk_size_from_settings(self):
        """The configured chunk size is used when none is given."""
        assert LocalFileSystem().chunk_size == 256 * 1024
        assert LocalFileSystem(chunk_size=10).chunk_size == 10


class TestCopyProgress:
    """Test the copy progress value type."""

    def test_percent(self):
        """Percent is derived from current and total bytes."""
        file = MemoryFileHandle("a", b"")
        directory = Mock(spec=DirectoryHandle)

        assert CopyProgress(file, directory, 200, 50).percent == 25.0
        assert CopyProgress(file, directory, 0, 0).percent == 100.0


class TestErrorCategory:
    """Test classification of access failures."""

    def test_categories(self):
        """Each OSError flavour maps to its category."""
        assert error_category(FileNotFoundError(errno.ENOENT, "x")) == "not_found"
        assert error_category(PermissionError(errno.EACCES, "x")) == "permission_denied"
        assert error_category(OSError(errno.ENAMETOOLONG, "x")) == "path_too_long"
        assert error_category(OSError(errno.EIO, "x")) == "io_error"


class TestFileSystemFactory:
    """Test backend creation."""

    def test_create_local_backend(self):
        """Local backends are registered by default."""
        backend = FileSystemFactory.create_backend(BackendType.LOCAL, chunk_size=1024)

        assert isinstance(backend, LocalFileSystem)
        assert backend.chunk_size == 1024
        assert BackendType.LOCAL in FileSystemFactory.get_supported_types()

    def test_unknown_backend_type(self):
        """Unregistered types are rejected."""
        with pytest.raises(ValueError):
            FileSystemFactory.create_backend("ftp")
