"""
The cli module defines the audiokiosk CLI interface. It does not have any domain logic of its own.
It is dedicated to parsing, resolving arguments, and delegating to the appropriate module.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import click

from audiokiosk.common import VERSION, TrackDoesNotExistError
from audiokiosk.config import Config

logger = logging.getLogger(__name__)


@dataclass
class Context:
    config: Config


# fmt: off
@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Emit verbose logging.")
@click.option("--config", "-c", type=click.Path(path_type=Path), help="Override the config file location.")
@click.pass_context
# fmt: on
def cli(cc: click.Context, verbose: bool, config: Path | None = None) -> None:
    """Catalog a music library for the audio kiosk."""
    from audiokiosk.catalog import maybe_invalidate_catalog_database

    cc.obj = Context(
        config=Config.parse(config_path_override=config),
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("audiokiosk").setLevel(logging.DEBUG)
    maybe_invalidate_catalog_database(cc.obj.config)


@cli.command()
def version() -> None:
    """Print version."""
    click.echo(VERSION)


# fmt: off
@cli.command()
@click.option("--force", "-f", is_flag=True, help="Force re-read all tags from disk, even for unchanged files.")
@click.pass_obj
# fmt: on
def scan(ctx: Context, force: bool) -> None:
    """Synchronize the catalog with new changes in the source directory."""
    from audiokiosk.scanner import run_scan

    result = run_scan(ctx.config, force=force)
    click.echo(
        f"Found {result.scanned} files: {result.indexed} indexed, {result.skipped} unchanged, "
        f"{result.failed} failed."
    )


@cli.group()
def tracks() -> None:
    """Inspect catalogued tracks."""


@tracks.command(name="print")
@click.argument("track_id", type=int, nargs=1)
@click.pass_obj
def print1(ctx: Context, track_id: int) -> None:
    """Print a single track (in JSON)."""
    from audiokiosk.dump import dump_track

    click.echo(dump_track(ctx.config, track_id))


@tracks.command(name="print-all")
@click.pass_obj
def print_all(ctx: Context) -> None:
    """Print all tracks (in JSON)."""
    from audiokiosk.dump import dump_all_tracks

    click.echo(dump_all_tracks(ctx.config))


@tracks.command()
@click.argument("track_id", type=int, nargs=1)
@click.pass_obj
def path(ctx: Context, track_id: int) -> None:
    """Print the source file path of a track."""
    from audiokiosk.catalog import get_track_path

    p = get_track_path(ctx.config, track_id)
    if p is None:
        raise TrackDoesNotExistError(f"Track {track_id} does not exist")
    click.echo(str(p))


@cli.group()
def albums() -> None:
    """Inspect catalogued albums."""


@albums.command(name="print")
@click.argument("album_id", type=int, nargs=1)
@click.pass_obj
def print2(ctx: Context, album_id: int) -> None:
    """Print a single album and its tracks (in JSON)."""
    from audiokiosk.dump import dump_album

    click.echo(dump_album(ctx.config, album_id))


@albums.command(name="print-all")
@click.pass_obj
def print_all2(ctx: Context) -> None:
    """Print all albums (in JSON)."""
    from audiokiosk.dump import dump_all_albums

    click.echo(dump_all_albums(ctx.config))


@cli.group()
def artists() -> None:
    """Inspect catalogued artists."""


@artists.command(name="print-all")
@click.pass_obj
def print_all3(ctx: Context) -> None:
    """Print all artists (in JSON)."""
    from audiokiosk.dump import dump_all_artists

    click.echo(dump_all_artists(ctx.config))
