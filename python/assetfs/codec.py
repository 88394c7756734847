"""Payload encoding: gzip + base64, wrapped into fixed-width lines."""

import base64
import binascii
import gzip
import zlib

from assetfs.errors import CodecError, CompressionError

NO_COMPRESSION = 0
BEST_COMPRESSION = 9

LINE_WIDTH = 80


def encode(raw: bytes, level: int = BEST_COMPRESSION) -> str:
    """Encode raw bytes as an embeddable text payload.

    Level 0 stores the bytes verbatim (base64 only). Any other level
    gzip-compresses first. The result starts with a newline and holds one
    LINE_WIDTH chunk per line, each newline-terminated.
    """
    if level == NO_COMPRESSION:
        stream = raw
    else:
        try:
            stream = gzip.compress(raw, compresslevel=level, mtime=0)
        except (ValueError, zlib.error) as exc:
            raise CompressionError(f"gzip level {level}: {exc}") from exc

    text = base64.b64encode(stream).decode("ascii")
    lines = [text[i : i + LINE_WIDTH] for i in range(0, len(text), LINE_WIDTH)]
    return "\n" + "".join(f"{line}\n" for line in lines)


def decode(payload: str, compressed: bool = True) -> bytes:
    """Inverse of encode()."""
    text = "".join(payload.split())
    try:
        stream = base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise CodecError(f"invalid base64 payload: {exc}") from exc
    if not compressed:
        return stream
    try:
        return gzip.decompress(stream)
    except (OSError, EOFError, zlib.error) as exc:
        raise CodecError(f"invalid gzip payload: {exc}") from exc


def is_compressed(level: int) -> bool:
    return level != NO_COMPRESSION
