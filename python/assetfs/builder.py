"""Manifest builder for assetfs."""

import collections.abc

import structlog

from assetfs import codec
from assetfs.config import BuildOptions, BundleConfig
from assetfs.errors import DuplicateKeyError, ManifestError
from assetfs.manifest import AssetDirectory, AssetFile, Manifest
from assetfs.walker import DirectoryRecord, FileRecord, ListingProvider, walk

log = structlog.get_logger(__name__)


class ManifestBuilder:
    """Builds a manifest from walked file and directory records."""

    def __init__(self, level: int = codec.BEST_COMPRESSION, *, private: bool = False) -> None:
        self.level = level
        self.private = private

    def encode(self, record: FileRecord) -> AssetFile:
        """Compress one walked file into its manifest entry."""
        return AssetFile(
            key=record.key,
            base_name=record.base_name,
            local=record.local,
            size=len(record.data),
            mod_time=record.mod_time,
            payload=codec.encode(record.data, self.level),
            compressed=codec.is_compressed(self.level),
        )

    def build(
        self,
        files: collections.abc.Iterable[AssetFile],
        directories: collections.abc.Iterable[DirectoryRecord | AssetDirectory],
    ) -> Manifest:
        """Sort, validate and freeze the entries into a Manifest."""
        sorted_files = sorted(files, key=lambda f: f.key)
        sorted_dirs = sorted(
            (
                d
                if isinstance(d, AssetDirectory)
                else AssetDirectory(
                    key=d.key, base_name=d.base_name, local=d.local, child_keys=d.child_keys
                )
                for d in directories
            ),
            key=lambda d: d.key,
        )

        owners: dict[str, str] = {}
        for entry in (*sorted_files, *sorted_dirs):
            if entry.key in owners:
                raise DuplicateKeyError(entry.key, owners[entry.key], entry.local)
            owners[entry.key] = entry.local

        for d in sorted_dirs:
            if list(d.child_keys) != sorted(d.child_keys):
                raise ManifestError(f"{d.key}: child keys are not sorted")
            missing = [k for k in d.child_keys if k not in owners]
            if missing:
                raise ManifestError(f"{d.key}: unknown child keys {missing}")

        return Manifest(files=tuple(sorted_files), directories=tuple(sorted_dirs), private=self.private)


def bundle(
    config: BundleConfig | BuildOptions,
    *,
    provider: ListingProvider | None = None,
) -> Manifest:
    """Run the full pipeline: compile config, walk, encode and build.

    Any failure propagates; nothing is returned for a partial walk.
    """
    options = config.compile() if isinstance(config, BundleConfig) else config
    result = walk(
        options.roots,
        prefix=options.prefix,
        ignore=options.ignore,
        include=options.include,
        mod_time=options.mod_time,
        provider=provider,
    )

    builder = ManifestBuilder(options.level, private=options.private)
    manifest = builder.build([builder.encode(f) for f in result.files], result.directories)
    log.info(
        "bundle.built",
        files=len(manifest.files),
        directories=len(manifest.directories),
        compressed=codec.is_compressed(options.level),
    )
    return manifest
