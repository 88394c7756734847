"""Render a manifest into an importable Python module."""

import pprint

from assetfs.errors import TemplatingError
from assetfs.manifest import Manifest

MODULE_TEMPLATE = '''\
# Code generated by "assetfs{invocation}"; DO NOT EDIT.
"""Embedded assets."""

from assetfs import runtime
from assetfs.manifest import Manifest

_MANIFEST = Manifest.model_validate(
{data}
)


def {prefix}fs(use_local: bool = False) -> runtime.FileSystem:
    """Filesystem for the embedded assets. If use_local is true, the files on disk are used instead."""
    return runtime.open_filesystem(_MANIFEST, use_local)


def {prefix}fs_dir(use_local: bool, name: str) -> runtime.FileSystem:
    """Filesystem for the embedded assets below the directory name."""
    return runtime.open_directory(_MANIFEST, name, use_local)


def {prefix}fs_bytes(use_local: bool, name: str) -> bytes:
    """Content of the named asset."""
    return runtime.read_bytes(_MANIFEST, name, use_local)


def {prefix}fs_string(use_local: bool, name: str) -> str:
    """Content of the named asset, decoded as UTF-8."""
    return runtime.read_text(_MANIFEST, name, use_local)
'''


def function_prefix(manifest: Manifest) -> str:
    return "_" if manifest.private else ""


def render_module(manifest: Manifest, invocation: str = "", filename: str = "static.py") -> str:
    """Return module source embedding the manifest.

    The source is compiled before it is returned, so a rendering bug
    surfaces here as TemplatingError instead of at import time.
    """
    try:
        data = pprint.pformat(manifest.model_dump(mode="json"), indent=4, width=100, sort_dicts=False)
        source = MODULE_TEMPLATE.format(
            invocation=" " + " ".join(invocation.split()) if invocation.strip() else "",
            prefix=function_prefix(manifest),
            data=data,
        )
        compile(source, filename, "exec")
    except (SyntaxError, ValueError, KeyError) as exc:
        raise TemplatingError(f"{filename}: {exc}") from exc
    return source
