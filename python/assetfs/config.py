"""Bundle configuration (assetfs.yaml)."""

import pathlib
import re
import typing

import pydantic
import yaml

from assetfs import codec
from assetfs.errors import InvalidModTimeError, PatternCompileError

CONFIG_NAME = "assetfs.yaml"

_INTEGER = re.compile(r"[+-]?[0-9]+")


class BuildOptions(typing.NamedTuple):
    """Compiled, validated settings threaded through the bundling pipeline."""

    roots: tuple[str, ...]
    prefix: str
    ignore: re.Pattern[str] | None
    include: re.Pattern[str] | None
    mod_time: int | None
    level: int
    private: bool


class BundleConfig(pydantic.BaseModel):
    """User-facing bundle settings, loaded from YAML and/or CLI flags."""

    model_config = pydantic.ConfigDict(extra="forbid")

    files: list[str] = pydantic.Field(default_factory=list)
    output: str | None = None
    prefix: str = ""
    ignore: str | None = None
    include: str | None = None
    mod_time: pydantic.StrictInt | str | None = None
    private: bool = False
    no_compression: bool = False
    invocation: str = ""

    @classmethod
    def load(cls, config_path: pathlib.Path) -> typing.Self:
        """Load from YAML; a missing file yields the defaults."""
        if not config_path.is_file():
            return cls()
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(data)

    def compile(self) -> BuildOptions:
        return BuildOptions(
            roots=tuple(self.files),
            prefix=self.prefix,
            ignore=_compile_pattern("ignore", self.ignore),
            include=_compile_pattern("include", self.include),
            mod_time=_parse_mod_time(self.mod_time),
            level=codec.NO_COMPRESSION if self.no_compression else codec.BEST_COMPRESSION,
            private=self.private,
        )


def _compile_pattern(name: str, pattern: str | None) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise PatternCompileError(f"{name}: {pattern!r}: {exc}") from exc


def _parse_mod_time(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidModTimeError(f"modtime must be an integer: {value!r}")
    if isinstance(value, int):
        return value
    text = value.strip()
    if not _INTEGER.fullmatch(text):
        raise InvalidModTimeError(f"modtime must be an integer: {value!r}")
    return int(text)
