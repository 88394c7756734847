"""Lazy, exactly-once payload decoding."""

import collections.abc
import enum
import threading

from assetfs import codec
from assetfs.errors import DecompressionError

Decoder = collections.abc.Callable[[str, bool], bytes]


class BlobState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    DECOMPRESSING = "decompressing"
    READY = "ready"
    FAILED = "failed"


class LazyBlob:
    """Decoded content of one embedded file, computed on first access.

    The decode runs at most once, under a per-blob lock. Its outcome, data or
    error, is stored and handed to every caller. Once READY the data is
    immutable and read without locking.
    """

    __slots__ = ("key", "_payload", "_compressed", "_decoder", "_lock", "_state", "_data", "_error")

    def __init__(
        self,
        key: str,
        payload: str,
        compressed: bool,
        decoder: Decoder = codec.decode,
    ) -> None:
        self.key = key
        self._payload = payload
        self._compressed = compressed
        self._decoder = decoder
        self._lock = threading.Lock()
        self._state = BlobState.UNINITIALIZED
        self._data: bytes | None = None
        self._error: Exception | None = None

    @property
    def state(self) -> BlobState:
        return self._state

    def get(self) -> bytes:
        """Return decoded bytes, raising DecompressionError if decoding failed."""
        if self._state is not BlobState.READY and self._state is not BlobState.FAILED:
            with self._lock:
                if self._state is BlobState.UNINITIALIZED:
                    self._resolve()

        if self._state is BlobState.READY and self._data is not None:
            return self._data
        if self._state is BlobState.FAILED and self._error is not None:
            raise DecompressionError(self.key, self._error) from self._error
        raise RuntimeError(f"blob {self.key!r} left in state {self._state.value}")

    def _resolve(self) -> None:
        self._state = BlobState.DECOMPRESSING
        try:
            self._data = self._decoder(self._payload, self._compressed)
        except Exception as exc:
            self._error = exc
            self._state = BlobState.FAILED
        except BaseException:
            # interrupted, not a decode outcome: a later get() decodes again
            self._state = BlobState.UNINITIALIZED
            raise
        else:
            self._state = BlobState.READY
