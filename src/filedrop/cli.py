"""Command-line interface for filedrop."""

import logging
import os
from pathlib import Path

import click
import yaml

from . import __version__
from .config import (
    CONFIG_FILENAME,
    config_to_dict,
    create_default_config,
    find_config_file,
    load_config,
)
from .errors import FiledropError
from .opener import Opener
from .payload import detect_mime
from .platform import platform_from_config
from .publisher import Publisher
from .reader import Reader
from .sharing import ENV_GRANT_ID, ReadGrant
from .viewers import discover_viewers

_config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)


def _load(config_path):
    return load_config(config_path=Path(config_path) if config_path else None)


@click.group()
@click.version_option(version=__version__, prog_name="filedrop")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr")
def main(verbose):
    """Publish files to public storage and open them in external viewers.

    \b
    Quick start:
      filedrop config init                # Create .filedrop.yaml
      filedrop publish report.pdf         # Publish into the public area
      filedrop open file:///tmp/a.pdf     # Share and open in a viewer
      filedrop list                       # Show published broker entries
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-n", "--name", help="Published file name (default: source name)")
@click.option("-m", "--mime", "media_type", help="Media type (default: guessed)")
@click.option("--base64", "is_base64", is_flag=True, help="Input file holds base64 text")
@_config_option
def publish(path, name, media_type, is_base64, config_path):
    """Publish a file into the public storage area.

    \b
    Examples:
      filedrop publish report.pdf
      filedrop publish scan.b64 --base64 -n scan.png -m image/png
    """
    source = Path(path)
    try:
        cfg = _load(config_path)
        publisher = Publisher(platform_from_config(cfg))
        if is_base64:
            reference = publisher.publish_base64(
                name or source.stem,
                source.read_text(encoding="ascii", errors="replace"),
                media_type or detect_mime(Path(name or source.stem)),
            )
        else:
            reference = publisher.publish(
                name or source.name,
                source.read_bytes(),
                media_type or detect_mime(source),
            )
    except OSError as e:
        raise click.ClickException(f"Cannot read {source}: {e}")
    except FiledropError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    click.echo(f"Published: {reference.uri}")


@main.command("open")
@click.argument("uri")
@click.option("-m", "--mime", "media_type", help="Media type (default: application/pdf)")
@_config_option
def open_(uri, media_type, config_path):
    """Open a reference in an external viewer.

    File references are shared through a scoped, short-lived grant.
    """
    if media_type is None and not uri.startswith(("content:", "http:", "https:")):
        media_type = detect_mime(Path(uri))
        if media_type == "application/octet-stream":
            media_type = None
    try:
        cfg = _load(config_path)
        if cfg.share.secret is None:
            click.echo(
                "Warning: share.secret is not set; viewers cannot verify read grants",
                err=True,
            )
        result = Opener(platform_from_config(cfg)).open(uri, media_type)
    except FiledropError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    click.echo(f"Opened: {result.uri} ({result.viewer})")


@main.command()
@click.argument("uri")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    help="Write the bytes to a file instead of stdout",
)
@click.option("--view", is_flag=True, help="Show a local copy in the default application")
@_config_option
def read(uri, output, view, config_path):
    """Read a reference handed to a viewer, using its read grant.

    Viewers run this with the grant in their environment
    (FILEDROP_GRANT_*), as set up by "filedrop open".
    """
    try:
        cfg = _load(config_path)
        if cfg.share.secret is None:
            raise click.ClickException(
                "share.secret is not set; read grants cannot be verified"
            )
        reader = Reader(platform_from_config(cfg))
        grant = ReadGrant.from_env(os.environ, uri) if ENV_GRANT_ID in os.environ else None
        if view:
            click.echo(f"Opened: {reader.view(uri, grant)}")
            return
        if grant is None:
            raise click.ClickException(f"No read grant for {uri}")
        data = reader.read(uri, grant)
    except OSError as e:
        raise click.ClickException(f"Cannot read {uri}: {e}")
    except FiledropError as e:
        raise click.ClickException(f"{e.kind}: {e}")

    if output:
        Path(output).write_bytes(data)
    else:
        click.get_binary_stream("stdout").write(data)


@main.command("list")
@click.option("--visible", is_flag=True, help="Hide uncommitted reservations")
@_config_option
def list_(visible, config_path):
    """List entries published through the storage broker."""
    try:
        cfg = _load(config_path)
        platform = platform_from_config(cfg)
        if platform.broker is None:
            raise click.ClickException("No storage broker configured")
        entries = platform.broker.listing(include_pending=not visible)
    except FiledropError as e:
        raise click.ClickException(str(e))

    if not entries:
        click.echo("No entries")
        return

    for entry in entries:
        marker = " (pending)" if entry.is_pending else ""
        click.echo(f"{entry.name}\t{entry.media_type}\t{entry.size}\t{entry.uri}{marker}")


@main.command()
@_config_option
def viewers(config_path):
    """List available viewers and the media types they accept."""
    try:
        cfg = _load(config_path)
    except FiledropError as e:
        raise click.ClickException(str(e))

    for viewer in sorted(discover_viewers(cfg), key=lambda v: v.name):
        click.echo(
            f"{viewer.name:<10} priority={viewer.priority:<3} "
            f"{', '.join(viewer.mime_types)}  [{' '.join(viewer.command())}]"
        )


@main.group()
def config():
    """Manage filedrop configuration."""
    pass


@config.command("init")
@click.option(
    "-d",
    "--directory",
    type=click.Path(),
    default=".",
    help="Directory to create config in",
)
def config_init(directory):
    """Create a new .filedrop.yaml configuration file.

    Generates a config file with a random share secret.
    """
    try:
        config_path = create_default_config(Path(directory))
    except FiledropError as e:
        raise click.ClickException(str(e))

    click.echo(f"Created: {config_path}")


@config.command("show")
@_config_option
def config_show(config_path):
    """Display current configuration.

    Shows merged configuration from file, environment, and defaults.
    The share secret is masked.
    """
    try:
        cfg = _load(config_path)
    except FiledropError as e:
        raise click.ClickException(str(e))

    click.echo(yaml.dump(config_to_dict(cfg), default_flow_style=False, sort_keys=False))


@config.command("where")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True),
    help="Directory to search from",
)
def config_where(directory):
    """Show which config file would be used."""
    start = Path(directory) if directory else Path.cwd()
    config_path = find_config_file(start)

    if config_path:
        click.echo(f"Config file: {config_path}")
    else:
        click.echo(f"No {CONFIG_FILENAME} found (searched from {start})")
