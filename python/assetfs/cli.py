import pathlib
import sys
import typing

import click
import structlog
from rich.console import Console

from assetfs import log as log_setup
from assetfs.builder import bundle
from assetfs.config import CONFIG_NAME, BundleConfig
from assetfs.errors import AssetError
from assetfs.manifest import Manifest, print_tree
from assetfs.render import render_module

console = Console(stderr=True)
log = structlog.get_logger(__name__)


def _load_config(config_path: pathlib.Path | None, overrides: dict[str, typing.Any]) -> BundleConfig:
    path = config_path if config_path is not None else pathlib.Path.cwd() / CONFIG_NAME
    if config_path is not None and not config_path.is_file():
        raise click.BadParameter(f"{config_path} does not exist", param_hint="--config")
    config = BundleConfig.load(path)
    update = {k: v for k, v in overrides.items() if v not in (None, (), False)}
    if "files" in update:
        update["files"] = list(update["files"])
    return config.model_copy(update=update)


def _build(config: BundleConfig) -> Manifest:
    if not config.files:
        raise click.UsageError(f"no files to embed: pass FILES or set 'files' in {CONFIG_NAME}")
    try:
        return bundle(config)
    except AssetError as exc:
        raise click.ClickException(str(exc)) from exc


def _filter_options(f: typing.Callable[..., typing.Any]) -> typing.Callable[..., typing.Any]:
    f = click.option(
        "--config",
        "config_path",
        type=click.Path(path_type=pathlib.Path),
        help=f"YAML config file (default ./{CONFIG_NAME}).",
    )(f)
    f = click.option("--include", help="Regexp for files to include; only matching files are embedded.")(f)
    f = click.option("--ignore", help="Regexp for files to ignore, e.g. '\\.DS_Store'.")(f)
    f = click.option("--prefix", help="Prefix to strip from file names.")(f)
    f = click.argument("files", nargs=-1, type=click.Path())(f)
    return f


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log walk and build events.")
def main(verbose: bool) -> None:
    """Embed files into a Python module served through a virtual filesystem."""
    log_setup.configure(verbose)


@main.command("bundle")
@_filter_options
@click.option("-o", "--output", help="Output file, else stdout.")
@click.option("--modtime", "mod_time", help="Unix timestamp to use as modification time for all files.")
@click.option("--private", is_flag=True, help="Prefix generated functions with '_'.")
@click.option("--no-compress", "no_compression", is_flag=True, help="Store files without compression.")
def bundle_command(
    files: tuple[str, ...],
    prefix: str | None,
    ignore: str | None,
    include: str | None,
    config_path: pathlib.Path | None,
    output: str | None,
    mod_time: str | None,
    private: bool,
    no_compression: bool,
) -> None:
    """Bundle FILES (files or directories) into a Python module."""
    config = _load_config(
        config_path,
        {
            "files": files,
            "prefix": prefix,
            "ignore": ignore,
            "include": include,
            "output": output,
            "mod_time": mod_time,
            "private": private,
            "no_compression": no_compression,
        },
    )
    manifest = _build(config)
    invocation = config.invocation or " ".join(sys.argv[1:])
    output_name = config.output or "static.py"
    try:
        source = render_module(manifest, invocation, pathlib.Path(output_name).name)
    except AssetError as exc:
        raise click.ClickException(str(exc)) from exc

    if config.output is None:
        click.echo(source, nl=False)
        return
    try:
        pathlib.Path(config.output).write_text(source, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"{config.output}: {exc}") from exc
    log.info("bundle.written", output=config.output, bytes=len(source))
    console.print(f"Wrote [bold]{config.output}[/] with {len(manifest.files)} files")


@main.command("tree")
@_filter_options
def tree_command(
    files: tuple[str, ...],
    prefix: str | None,
    ignore: str | None,
    include: str | None,
    config_path: pathlib.Path | None,
) -> None:
    """Show which entries FILES would embed."""
    config = _load_config(
        config_path,
        {"files": files, "prefix": prefix, "ignore": ignore, "include": include},
    )
    manifest = _build(config)
    console.print(print_tree(manifest))


if __name__ == "__main__":
    main()
