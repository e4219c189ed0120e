"""
Main CLI for assetref using Click.

Resolves picture references and inspects the bundled and disk indexes.
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__
from .config.loader import load_config
from .config.schema import AppConfig
from .index.tree import format_tree, index_summary, node_at
from .logging import configure_logging
from .prefs import JsonPreferenceStore
from .resolver import AssetResolver

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3


def _common_options(func):
    """Options shared by every command that loads the configuration."""
    func = click.option(
        "-c",
        "--config",
        type=click.Path(exists=True, path_type=Path),
        help="Path to the YAML configuration file",
    )(func)
    func = click.option(
        "--manifest",
        type=click.Path(path_type=Path),
        help="JSON manifest of bundled pictures",
    )(func)
    func = click.option(
        "--bundle-dir",
        type=click.Path(path_type=Path),
        help="Directory of bundled pictures (used without manifest)",
    )(func)
    func = click.option(
        "--preferences",
        type=click.Path(path_type=Path),
        help="Preferences file holding the disk pictures folder",
    )(func)
    func = click.option("-v", "--verbose", count=True, help="Verbosity (-v info, -vv debug)")(func)
    func = click.option("--quiet", is_flag=True, help="Silence console logs")(func)
    func = click.option("--log-file", type=click.Path(path_type=Path), help="JSON log file")(func)
    return func


def _load(kwargs: dict[str, Any]) -> AppConfig:
    """Load the configuration and configure logging, exiting on config errors."""
    config_path = kwargs.pop("config", None)
    quiet = kwargs.pop("quiet", False)
    try:
        app_config = load_config(config_path=config_path, cli_args=kwargs)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except Exception as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    configure_logging(app_config.logging, quiet=quiet)
    return app_config


@click.group()
@click.version_option(version=__version__, prog_name="assetref")
def main() -> None:
    """assetref - Resolve picture references to loadable URLs.

    References like @pp/room/lamp.png are looked up in the local pictures
    folder first, then in the pictures bundled with the build.
    """
    pass


@main.command()
@click.argument("refs", nargs=-1, required=True)
@_common_options
def resolve(refs: tuple[str, ...], **kwargs) -> None:
    """Print the URL of each REF. Exits with 1 if any is missing."""
    resolver = AssetResolver.from_config(_load(kwargs))

    missing = 0
    for ref in refs:
        url = resolver.resolve(ref)
        if url:
            click.echo(f"{ref}\t{url}")
        else:
            missing += 1
            click.echo(f"{ref}\t(missing)")

    sys.exit(EXIT_FAILED if missing else EXIT_SUCCESS)


@main.command()
@click.argument("path", required=False, default="")
@click.option(
    "--disk/--bundled",
    default=False,
    help="Show the disk index or the bundled one (default: bundled)",
)
@_common_options
def tree(path: str, disk: bool, **kwargs) -> None:
    """Print the folder tree of an index, optionally from PATH down."""
    resolver = AssetResolver.from_config(_load(kwargs))

    index = resolver.disk_index if disk else resolver.bundled_index
    if index is None:
        click.echo("No disk pictures folder configured.", err=True)
        sys.exit(EXIT_FAILED)

    node = node_at(index.root, path)
    if node is None:
        click.echo(f"Folder not found: {path}", err=True)
        sys.exit(EXIT_FAILED)

    click.echo(f"{path or '.'} ({index.origin.value}, {index.count} pictures)")
    click.echo(format_tree(node))


@main.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@_common_options
def status(json_output: bool, **kwargs) -> None:
    """Show counters and diagnostics of both indexes."""
    resolver = AssetResolver.from_config(_load(kwargs))

    disk = resolver.disk_index
    data = {
        "bundled": index_summary(resolver.bundled_index),
        "disk": index_summary(disk) if disk is not None else None,
        "disk_root": resolver.disk_cache.configured_root() if resolver.disk_cache else None,
    }

    if json_output:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    for name in ("bundled", "disk"):
        summary = data[name]
        if summary is None:
            click.echo(f"{name}: not configured")
            continue
        line = f"{name}: {summary['count']} pictures via {summary['method']}"
        if summary["error"]:
            line += f" • {summary['error']}"
        click.echo(line)
        for path in summary["skipped"]:
            click.echo(f"  skipped: {path}")
    if data["disk_root"]:
        click.echo(f"disk root: {data['disk_root']}")


@main.command("set-root")
@click.argument("root")
@_common_options
def set_root(root: str, **kwargs) -> None:
    """Persist ROOT as the local pictures folder."""
    app_config = _load(kwargs)
    prefs = JsonPreferenceStore(app_config.disk.preferences_file)
    prefs.set(app_config.disk.root_keys[0], root)
    click.echo(f"Disk pictures folder set to {root}")


@main.command("validate-config")
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to the configuration file to validate",
)
def validate_config(config: Path | None) -> None:
    """Validate a YAML configuration file."""
    try:
        app_config = load_config(config_path=config)
        click.echo("Valid configuration")
        click.echo(f"  Manifest: {app_config.bundled.manifest or '-'}")
        click.echo(f"  Bundle dir: {app_config.bundled.bundle_dir or '-'}")
        click.echo(f"  Preferences: {app_config.disk.preferences_file}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except Exception as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_FAILED)
