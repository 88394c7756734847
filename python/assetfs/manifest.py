"""assetfs manifest models."""

import collections.abc
import typing
from typing import Literal

import pydantic
from rich.tree import Tree

from assetfs.blob import LazyBlob


class AssetFile(pydantic.BaseModel):
    """An embedded file."""

    model_config = pydantic.ConfigDict(extra="forbid", frozen=True)

    kind: Literal["file"] = "file"
    key: str
    base_name: str
    local: str
    size: int
    mod_time: int
    payload: str
    compressed: bool = True


class AssetDirectory(pydantic.BaseModel):
    """An embedded directory. child_keys are resolved through the manifest."""

    model_config = pydantic.ConfigDict(extra="forbid", frozen=True)

    kind: Literal["dir"] = "dir"
    key: str
    base_name: str
    local: str
    child_keys: tuple[str, ...] = ()


class Manifest(pydantic.BaseModel):
    """Finalized, immutable set of embedded files and directories."""

    model_config = pydantic.ConfigDict(extra="forbid", frozen=True)

    apiVersion: Literal["assetfs/v1"] = "assetfs/v1"
    files: tuple[AssetFile, ...] = ()
    directories: tuple[AssetDirectory, ...] = ()
    private: bool = False

    _entries: dict[str, AssetFile | AssetDirectory] = pydantic.PrivateAttr(default_factory=dict)
    _listings: dict[str, tuple[AssetFile | AssetDirectory, ...]] = pydantic.PrivateAttr(
        default_factory=dict
    )
    _blobs: dict[str, LazyBlob] = pydantic.PrivateAttr(default_factory=dict)

    def model_post_init(self, context: typing.Any, /) -> None:
        entries: dict[str, AssetFile | AssetDirectory] = {}
        for entry in (*self.files, *self.directories):
            entries[entry.key] = entry
        self._entries = entries
        # Unknown child keys are dropped here; ManifestBuilder rejects them at build time.
        self._listings = {
            d.local: tuple(entries[k] for k in d.child_keys if k in entries)
            for d in self.directories
        }
        self._blobs = {f.key: LazyBlob(f.key, f.payload, f.compressed) for f in self.files}

    @property
    def entries(self) -> collections.abc.Mapping[str, AssetFile | AssetDirectory]:
        """Key to entry, over files and directories."""
        return self._entries

    @property
    def listings(self) -> collections.abc.Mapping[str, tuple[AssetFile | AssetDirectory, ...]]:
        """Directory local path to its ordered child entries."""
        return self._listings

    def get(self, key: str) -> AssetFile | AssetDirectory | None:
        return self._entries.get(key)

    def blob(self, key: str) -> LazyBlob:
        return self._blobs[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def print_tree(manifest: Manifest, title: str = "/") -> Tree:
    """Render the manifest as a rich tree rooted at '/'."""
    tree = Tree(f"[bold blue]{title}[/] [dim]({len(manifest.files)} files)[/]")
    nodes: dict[str, Tree] = {"/": tree}

    def _ensure_parent(key: str) -> Tree:
        if key in nodes:
            return nodes[key]
        parent, _, name = key.rpartition("/")
        node = _ensure_parent(parent or "/").add(f"[bold cyan]{name}/[/]")
        nodes[key] = node
        return node

    for entry in sorted(manifest.entries.values(), key=lambda e: e.key):
        if entry.key == "/":
            continue
        parent, _, name = entry.key.rpartition("/")
        if isinstance(entry, AssetDirectory):
            label = f"[bold cyan]{name}/[/] [dim]→ {entry.local}[/]"
        else:
            label = f"{name} [dim]{entry.size} B → {entry.local}[/]"
        if entry.key in nodes:
            nodes[entry.key].label = label
        else:
            nodes[entry.key] = _ensure_parent(parent or "/").add(label)
    return tree
