"""assetfs error types."""


class AssetError(Exception):
    pass


class BundleError(AssetError):
    """Raised when building a manifest fails. No partial manifest is produced."""


class InvalidModTimeError(BundleError):
    pass


class PatternCompileError(BundleError):
    pass


class AssetIOError(BundleError):
    pass


class DuplicateKeyError(BundleError):
    def __init__(self, key: str, first: str, second: str) -> None:
        super().__init__(f"{key}: duplicate name after prefix removal ({first}, {second})")
        self.key = key
        self.first = first
        self.second = second


class CompressionError(BundleError):
    pass


class ManifestError(BundleError):
    pass


class TemplatingError(BundleError):
    pass


class CodecError(AssetError):
    pass


class DecompressionError(AssetError):
    """Raised on every read of an embedded asset whose payload failed to decode."""

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"{key}: {cause}")
        self.key = key
        self.cause = cause
