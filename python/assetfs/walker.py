"""Breadth-first collection of files and directories to embed."""

import collections
import dataclasses
import os
import re
import stat
import typing

import structlog

from assetfs.errors import AssetIOError, DuplicateKeyError
from assetfs.paths import base_name, canonicalize, to_slash

log = structlog.get_logger(__name__)


class ListingProvider(typing.Protocol):
    """Filesystem access used by the walker."""

    def is_dir(self, path: str) -> bool: ...

    def list_dir(self, path: str) -> list[str]: ...

    def read(self, path: str) -> bytes: ...

    def mod_time(self, path: str) -> int: ...


class DiskProvider:
    """ListingProvider backed by the real filesystem."""

    def is_dir(self, path: str) -> bool:
        # os.stat, not os.path.isdir: a missing path must raise
        return stat.S_ISDIR(os.stat(path).st_mode)

    def list_dir(self, path: str) -> list[str]:
        return sorted(os.listdir(path))

    def read(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def mod_time(self, path: str) -> int:
        return int(os.stat(path).st_mtime)


@dataclasses.dataclass(frozen=True)
class FileRecord:
    key: str
    base_name: str
    local: str
    data: bytes = dataclasses.field(repr=False)
    mod_time: int


@dataclasses.dataclass(frozen=True)
class DirectoryRecord:
    key: str
    base_name: str
    local: str
    child_keys: tuple[str, ...]


class WalkResult(typing.NamedTuple):
    files: list[FileRecord]
    directories: list[DirectoryRecord]


def _matches(pattern: re.Pattern[str] | None, path: str) -> bool:
    return pattern is not None and pattern.search(path) is not None


def walk(
    roots: typing.Iterable[str],
    *,
    prefix: str = "",
    ignore: re.Pattern[str] | None = None,
    include: re.Pattern[str] | None = None,
    mod_time: int | None = None,
    provider: ListingProvider | None = None,
) -> WalkResult:
    """Collect files and directories reachable from roots.

    Paths matching ignore are dropped on dequeue, together with everything
    below them. include restricts which files are embedded and which children
    show up in a directory's listing; directories themselves are always kept.
    mod_time, when set, replaces every file's modification time.

    Raises:
        AssetIOError: a stat, listing or read failed.
        DuplicateKeyError: two source paths map to the same key.
    """
    provider = provider or DiskProvider()
    files: list[FileRecord] = []
    directories: list[DirectoryRecord] = []
    seen: dict[str, str] = {}

    queue = collections.deque(os.fspath(r) for r in roots)
    while queue:
        path = queue.popleft()
        if _matches(ignore, path):
            log.debug("walk.ignored", path=path)
            continue

        key = canonicalize(path, prefix)
        local = to_slash(path)
        try:
            is_dir = provider.is_dir(path)
        except OSError as exc:
            raise AssetIOError(f"{path}: {exc}") from exc

        if not is_dir and not (include is None or _matches(include, path)):
            continue

        source = to_slash(os.path.normpath(path))
        if key in seen:
            if seen[key] == source:
                continue
            raise DuplicateKeyError(key, seen[key], source)
        seen[key] = source

        try:
            if is_dir:
                child_keys: list[str] = []
                for name in provider.list_dir(path):
                    child = os.path.join(path, name)
                    queue.append(child)
                    if _matches(ignore, child):
                        continue
                    if include is None or _matches(include, child):
                        child_keys.append(canonicalize(child, prefix))
                directories.append(
                    DirectoryRecord(
                        key=key,
                        base_name=base_name(key),
                        local=local,
                        child_keys=tuple(sorted(child_keys)),
                    )
                )
            else:
                data = provider.read(path)
                files.append(
                    FileRecord(
                        key=key,
                        base_name=base_name(key),
                        local=local,
                        data=data,
                        mod_time=provider.mod_time(path) if mod_time is None else mod_time,
                    )
                )
                log.debug("walk.file", key=key, size=len(data))
        except OSError as exc:
            raise AssetIOError(f"{path}: {exc}") from exc

    return WalkResult(files, directories)
