"""assetfs - embed files into Python and serve them through a virtual filesystem."""

from assetfs.builder import ManifestBuilder, bundle
from assetfs.config import BundleConfig
from assetfs.errors import (
    AssetError,
    AssetIOError,
    BundleError,
    CompressionError,
    DecompressionError,
    DuplicateKeyError,
    InvalidModTimeError,
    ManifestError,
    PatternCompileError,
    TemplatingError,
)
from assetfs.manifest import AssetDirectory, AssetFile, Manifest
from assetfs.paths import canonicalize
from assetfs.runtime import (
    DirectoryView,
    EmbeddedFileSystem,
    FileInfo,
    FileSystem,
    LocalFileSystem,
    open_directory,
    open_filesystem,
    read_bytes,
    read_text,
)
from assetfs.walker import walk

__all__ = [
    "AssetDirectory",
    "AssetError",
    "AssetFile",
    "AssetIOError",
    "BundleConfig",
    "BundleError",
    "CompressionError",
    "DecompressionError",
    "DirectoryView",
    "DuplicateKeyError",
    "EmbeddedFileSystem",
    "FileInfo",
    "FileSystem",
    "InvalidModTimeError",
    "LocalFileSystem",
    "Manifest",
    "ManifestBuilder",
    "ManifestError",
    "PatternCompileError",
    "TemplatingError",
    "bundle",
    "canonicalize",
    "open_directory",
    "open_filesystem",
    "read_bytes",
    "read_text",
    "walk",
]
