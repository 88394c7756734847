"""Canonical asset keys."""

import os
import posixpath


def to_slash(path: str | os.PathLike[str]) -> str:
    """Return path with the OS separator replaced by '/'."""
    text = os.fspath(path)
    if os.sep != "/":
        text = text.replace(os.sep, "/")
    return text


def canonicalize(path: str | os.PathLike[str], prefix: str = "") -> str:
    """Strip prefix from path and root the remainder at '/'.

    The prefix is removed as a plain string prefix, not a path component.
    Canonicalizing a key again is a no-op for a relative prefix; an absolute
    prefix is stripped from the key itself when the key starts with it.
    The result is always an absolute, cleaned key:

        >>> canonicalize("assets/sub/b.txt", "assets")
        '/sub/b.txt'
        >>> canonicalize("/sub/b.txt", "assets")
        '/sub/b.txt'
    """
    text = to_slash(path)
    prefix = to_slash(prefix)
    if prefix and text.startswith(prefix):
        text = text[len(prefix):]
    # normpath keeps a leading '//' so strip before rooting
    return posixpath.normpath("/" + text.lstrip("/"))


def base_name(key: str) -> str:
    """Last element of a key; '/' for the root key."""
    name = posixpath.basename(key.rstrip("/"))
    return name or "/"
