"""Virtual filesystem over a manifest, backed by disk or by embedded payloads."""

import abc
import dataclasses
import datetime
import errno
import io
import os
import pathlib
import stat
import typing

from assetfs.manifest import AssetDirectory, AssetFile, Manifest
from assetfs.paths import canonicalize

FILE_MODE = stat.S_IFREG | 0o444
DIR_MODE = stat.S_IFDIR | 0o555


@dataclasses.dataclass(frozen=True)
class FileInfo:
    """Metadata of an opened entry, available without reading content."""

    name: str
    size: int
    mode: int
    mod_time: int
    is_dir: bool

    @property
    def modified(self) -> datetime.datetime:
        return datetime.datetime.fromtimestamp(self.mod_time, tz=datetime.timezone.utc)

    @classmethod
    def from_entry(cls, entry: AssetFile | AssetDirectory) -> typing.Self:
        if isinstance(entry, AssetDirectory):
            return cls(name=entry.base_name, size=0, mode=DIR_MODE, mod_time=0, is_dir=True)
        return cls(
            name=entry.base_name,
            size=entry.size,
            mode=FILE_MODE,
            mod_time=entry.mod_time,
            is_dir=False,
        )

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> typing.Self:
        return cls(
            name=name,
            size=st.st_size,
            mode=st.st_mode,
            mod_time=int(st.st_mtime),
            is_dir=stat.S_ISDIR(st.st_mode),
        )


def _not_found(name: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)


def _page(children: typing.Sequence[FileInfo], pos: int, count: int, name: str) -> list[FileInfo]:
    remaining = children[pos:]
    if count > 0 and not remaining:
        raise EOFError(f"{name}: no more directory entries")
    return list(remaining if count <= 0 else remaining[:count])


class Handle(abc.ABC):
    """An open file or directory. Release it with close() or a with-block."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.closed = False
        self._pos = 0

    @abc.abstractmethod
    def stat(self) -> FileInfo: ...

    @abc.abstractmethod
    def read(self, size: int = -1) -> bytes: ...

    @abc.abstractmethod
    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int: ...

    @abc.abstractmethod
    def _listing(self) -> typing.Sequence[FileInfo]: ...

    def readdir(self, count: int = 0) -> list[FileInfo]:
        """Return the next directory entries.

        count <= 0 returns everything not yet returned. count > 0 returns at
        most count entries, and raises EOFError when none remain.
        """
        self._check_open()
        if not self.stat().is_dir:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), self.name)
        batch = _page(self._listing(), self._pos, count, self.name)
        self._pos += len(batch)
        return batch

    def close(self) -> None:
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError(f"I/O operation on closed handle {self.name!r}")

    def __enter__(self) -> typing.Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: typing.Any,
    ) -> bool:
        self.close()
        return False


class EmbeddedHandle(Handle):
    """Handle on a manifest entry; file content is decoded on first read."""

    def __init__(self, manifest: Manifest, entry: AssetFile | AssetDirectory) -> None:
        super().__init__(entry.key)
        self._manifest = manifest
        self._entry = entry
        self._buffer: io.BytesIO | None = None

    def stat(self) -> FileInfo:
        self._check_open()
        return FileInfo.from_entry(self._entry)

    def data(self) -> bytes:
        if isinstance(self._entry, AssetDirectory):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self.name)
        return self._manifest.blob(self._entry.key).get()

    def _reader(self) -> io.BytesIO:
        self._check_open()
        if self._buffer is None:
            self._buffer = io.BytesIO(self.data())
        return self._buffer

    def read(self, size: int = -1) -> bytes:
        return self._reader().read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._reader().seek(offset, whence)

    def _listing(self) -> typing.Sequence[FileInfo]:
        children = self._manifest.listings.get(self._entry.local, ())
        return [FileInfo.from_entry(c) for c in children]

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
        super().close()


class LocalHandle(Handle):
    """Handle on a real file or directory."""

    def __init__(self, name: str, path: pathlib.Path) -> None:
        super().__init__(name)
        self.path = path
        st = os.stat(path)
        self._is_dir = stat.S_ISDIR(st.st_mode)
        self._file: typing.BinaryIO | None = None if self._is_dir else open(path, "rb")

    def stat(self) -> FileInfo:
        self._check_open()
        return FileInfo.from_stat(self.path.name, os.stat(self.path))

    def _io(self) -> typing.BinaryIO:
        self._check_open()
        if self._file is None:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(self.path))
        return self._file

    def read(self, size: int = -1) -> bytes:
        return self._io().read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._io().seek(offset, whence)

    def _listing(self) -> typing.Sequence[FileInfo]:
        return [
            FileInfo.from_stat(name, os.stat(self.path / name))
            for name in sorted(os.listdir(self.path))
        ]

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
        super().close()


class FileSystem(abc.ABC):
    """Read-only filesystem of manifest keys."""

    @abc.abstractmethod
    def open(self, name: str) -> Handle: ...

    def read_bytes(self, name: str) -> bytes:
        with self.open(name) as f:
            return f.read()

    def read_text(self, name: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(name).decode(encoding)

    def stat(self, name: str) -> FileInfo:
        with self.open(name) as f:
            return f.stat()

    def readdir(self, name: str, count: int = 0) -> list[FileInfo]:
        with self.open(name) as f:
            return f.readdir(count)


class EmbeddedFileSystem(FileSystem):
    """Serves content from the manifest's compressed payloads."""

    def __init__(self, manifest: Manifest) -> None:
        self.manifest = manifest

    def _lookup(self, name: str) -> AssetFile | AssetDirectory:
        entry = self.manifest.get(canonicalize(name))
        if entry is None:
            raise _not_found(name)
        return entry

    def open(self, name: str) -> EmbeddedHandle:
        return EmbeddedHandle(self.manifest, self._lookup(name))

    def read_bytes(self, name: str) -> bytes:
        entry = self._lookup(name)
        if isinstance(entry, AssetDirectory):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), name)
        return self.manifest.blob(entry.key).get()


class LocalFileSystem(FileSystem):
    """Proxies every open to the entry's original path on disk."""

    def __init__(self, manifest: Manifest, root: str | os.PathLike[str] | None = None) -> None:
        self.manifest = manifest
        self.root = pathlib.Path(root) if root is not None else None

    def open(self, name: str) -> LocalHandle:
        entry = self.manifest.get(canonicalize(name))
        if entry is None:
            raise _not_found(name)
        path = pathlib.Path(entry.local)
        if self.root is not None:
            path = self.root / path
        return LocalHandle(name, path)


class DirectoryView(FileSystem):
    """A filesystem rooted at prefix inside another filesystem."""

    def __init__(self, fs: FileSystem, prefix: str) -> None:
        self.fs = fs
        self.prefix = prefix

    def open(self, name: str) -> Handle:
        return self.fs.open(self.prefix + name)

    def read_bytes(self, name: str) -> bytes:
        return self.fs.read_bytes(self.prefix + name)


def open_filesystem(
    manifest: Manifest,
    use_local: bool = False,
    root: str | os.PathLike[str] | None = None,
) -> FileSystem:
    """Filesystem for the manifest; with use_local, files are read from disk."""
    if use_local:
        return LocalFileSystem(manifest, root)
    return EmbeddedFileSystem(manifest)


def open_directory(
    manifest: Manifest,
    name: str,
    use_local: bool = False,
    root: str | os.PathLike[str] | None = None,
) -> FileSystem:
    """Filesystem scoped to the directory name."""
    return DirectoryView(open_filesystem(manifest, use_local, root), name)


def read_bytes(manifest: Manifest, name: str, use_local: bool = False) -> bytes:
    return open_filesystem(manifest, use_local).read_bytes(name)


def read_text(manifest: Manifest, name: str, use_local: bool = False, encoding: str = "utf-8") -> str:
    return open_filesystem(manifest, use_local).read_text(name, encoding)
