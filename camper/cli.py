import os
import sys
import click
from typing import Optional, Tuple
import logging
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich import box

from . import __version__
from .config import Config, AudioFormat
from .client import CollectionClient, ResourceKind, QueryError

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Set up rich console
console = Console()

FORMAT_CHOICES = [f.value for f in AudioFormat]


@click.group()
@click.version_option(__version__, prog_name="camper")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to the configuration file")
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.pass_context
def cli(ctx, config_path, debug):
    """camper - List and manage your Bandcamp collection and wishlist."""
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load the configuration file if it exists, or empty defaults if not
    ctx.ensure_object(dict)
    ctx.obj["config"] = Config(config_path)


def ensure_configured(ctx) -> Config:
    """Return the loaded configuration, exiting if it is missing or invalid."""
    config = ctx.obj["config"]
    if not config.is_valid():
        logger.error("Missing or invalid configuration; please run `camper configure` and try again.")
        ctx.exit(1)
    return config


@cli.command()
@click.option("--fan-id", "-f", type=click.IntRange(min=1), help="Bandcamp user identifier")
@click.option("--identity", "-i", help="Bandcamp identity cookie")
@click.option("--library", "-l", help="Path to music library")
@click.option("--default-format", "-d", type=click.Choice(FORMAT_CHOICES),
              help="Default audio file format to download")
@click.option("--update", "-u", is_flag=True, help="Overwrite existing values with the provided values")
@click.option("--print", "-p", "print_config", is_flag=True,
              help="Print the current configuration, other options are ignored")
@click.pass_context
def configure(ctx, fan_id, identity, library, default_format, update, print_config):
    """Configure the application with authentication and library settings."""
    config = ctx.obj["config"]

    if print_config:
        show_config(config)
    elif update:
        configure_update(config, fan_id, identity, library, default_format)
    else:
        configure_create(config, fan_id, identity, library, default_format)


def configure_create(config: Config, fan_id: Optional[int], identity: Optional[str],
                     library: Optional[str], default_format: Optional[str]) -> None:
    """Create a new configuration, prompting for anything not given on the command line."""
    if fan_id is None:
        fan_id = click.prompt("Bandcamp fan ID", type=click.IntRange(min=1))
    if identity is None:
        identity = click.prompt("Bandcamp identity cookie")
    if library is None:
        library = click.prompt("Music library directory")
    if default_format is None:
        default_format = click.prompt("Default audio format", type=click.Choice(FORMAT_CHOICES),
                                      default=AudioFormat.MP3_V0.value)

    library_path = os.path.realpath(os.path.expanduser(library))
    if not os.path.isdir(library_path):
        logger.error(f"library path does not exist: '{library_path}'")
        sys.exit(1)

    config.config = {}
    config.set("bandcamp", "fan_id", fan_id)
    config.set("bandcamp", "identity", identity)
    config.set("library", "path", library_path)
    config.set("library", "format", default_format)
    config.save()

    console.print(Panel.fit(
        f"[bold green]Configuration saved to {config.config_path}[/bold green]",
        border_style="green"
    ))


def configure_update(config: Config, fan_id: Optional[int], identity: Optional[str],
                     library: Optional[str], default_format: Optional[str]) -> None:
    """Overwrite only the configuration values that were provided."""
    messages = []

    if fan_id is not None:
        messages.append(f"Updated fan ID to {fan_id}")
        config.set("bandcamp", "fan_id", fan_id)
    if identity is not None:
        messages.append(f"Updated identity to {identity}")
        config.set("bandcamp", "identity", identity)
    if library is not None:
        library_path = os.path.expanduser(library)
        messages.append(f"Updated library to {library_path}")
        config.set("library", "path", library_path)
    if default_format is not None:
        messages.append(f"Updated default format to {default_format}")
        config.set("library", "format", default_format)

    config.save()
    for message in messages:
        logger.info(message)

    if not config.is_valid():
        logger.warning("Configuration is still incomplete or invalid; check it with `camper configure --print`.")


def show_config(config: Config) -> None:
    """Print the current configuration."""
    console.print(Panel.fit(
        "[bold blue]camper Configuration[/bold blue]",
        border_style="blue"
    ))

    config_table = Table(show_header=False, box=box.SIMPLE)
    config_table.add_column("Setting", style="cyan")
    config_table.add_column("Value")

    config_table.add_row("Config path", config.config_path)
    if config.fan_id is not None:
        config_table.add_row("Fan ID", str(config.fan_id))
    if config.identity is not None:
        config_table.add_row("Identity", config.identity)
    if config.library is not None:
        config_table.add_row("Library", config.library)
    if config.format is not None:
        config_table.add_row("Format", str(config.format))

    console.print(config_table)


@cli.command("list")
@click.option("--fan-id", "-f", type=click.IntRange(min=1), help="ID of the user whose collection items to list")
@click.option("--wishlist", "-w", is_flag=True, help="List items from the wishlist instead")
@click.pass_context
def list_items(ctx, fan_id, wishlist):
    """List all albums in a collection or wishlist."""
    config = ensure_configured(ctx)

    # Another fan's collection can be listed, but default to our own
    fan_id = fan_id or config.fan_id
    kind = ResourceKind.WISHLIST if wishlist else ResourceKind.COLLECTION

    # Requests are authenticated so private and hidden items show up in our own lists
    client = CollectionClient(identity=config.identity)
    fetched = 0

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task(f"Fetching {kind.value}", total=None)

            def on_page(page):
                nonlocal fetched
                fetched += len(page.items)
                progress.update(task, description=f"Fetching {kind.value} ({fetched} items)")

            items = client.list(kind, fan_id, on_page=on_page)
    except QueryError as e:
        console.print(f"[bold red]Error listing {kind.value}:[/bold red] {str(e)}")
        ctx.exit(1)

    table = Table(show_header=True, header_style="bold magenta", box=box.ROUNDED)
    table.add_column("Album ID", justify="right", style="bold")
    table.add_column("Band")
    table.add_column("Album Title")

    for item in items:
        table.add_row(str(item.item_id), item.artist_name, item.item_title)

    console.print(table)
    console.print(f"\n{len(items)} items\n")


@cli.command()
@click.option("--format", "-f", "audio_format", type=click.Choice(FORMAT_CHOICES),
              help="File format to download albums in")
@click.argument("album_ids", nargs=-1, type=int, required=True)
@click.pass_context
def download(ctx, audio_format, album_ids: Tuple[int, ...]):
    """Download one or more albums from a collection."""
    ensure_configured(ctx)
    console.print("[yellow]Downloading is not implemented yet.[/yellow]")


@cli.command()
@click.option("--format", "-f", "audio_format", type=click.Choice(FORMAT_CHOICES),
              help="File format to download albums in")
@click.argument("directory", type=click.Path(file_okay=False))
@click.pass_context
def sync(ctx, audio_format, directory):
    """Synchronize a directory with a collection."""
    ensure_configured(ctx)
    console.print("[yellow]Syncing is not implemented yet.[/yellow]")


if __name__ == "__main__":
    cli()
