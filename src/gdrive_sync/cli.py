"""Command-line interface for the gdrive-sync application."""

import asyncio
import sys
from pathlib import Path

import click
from rich import print as rprint
from rich.console import Console
from rich.filesize import decimal as format_file_size
from rich.table import Table

from .auth.google_auth import GoogleDriveAuth
from .config.settings import CredentialsConfig, SyncConfig
from .exceptions import SyncError
from .remote.drive_client import DriveClient
from .sync.progress import SyncStats
from .sync.sync_manager import SyncManager
from .sync.sync_state import SyncState
from .utils.logging import TimedOperation, setup_logging

console = Console()

config_option = click.option(
    '--config', '-c',
    type=click.Path(exists=True, path_type=Path),
    default=Path('config/app.yml'),
    help='Path to configuration file',
)
credentials_option = click.option(
    '--credentials',
    type=click.Path(path_type=Path),
    default=Path('config/credentials.yml'),
    help='Path to credentials file',
)


def _load_credentials(credentials: Path) -> CredentialsConfig:
    if credentials.exists():
        return CredentialsConfig.from_yaml(credentials)
    return CredentialsConfig.from_env()


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Google Drive folder sync

    Mirrors a local directory tree into a Google Drive folder.
    """


@cli.command()
@config_option
@credentials_option
def sync(config: Path, credentials: Path):
    """Upload new and changed files to Google Drive."""
    try:
        with console.status("Loading configuration..."):
            sync_config = SyncConfig.from_yaml(config)
            creds_config = _load_credentials(credentials)
        console.print(f"✅ Configuration loaded from {config}", style="green")

        logger = setup_logging(log_level=sync_config.log_level, log_file=sync_config.log_file)

        auth = GoogleDriveAuth(creds_config.client_secret_file, creds_config.token_file)
        client = DriveClient(auth.get_session())

        sync_state = SyncState(sync_config.state_file, path_prefix=sync_config.local_root_folder)
        sync_state.load()
        manager = SyncManager(client, sync_config, sync_state)

        with TimedOperation(logger, f"sync of {sync_config.local_root_folder}"):
            asyncio.run(manager.run())

        _display_sync_results(manager.stats, manager.progress.total)

    except SyncError as e:
        console.print(f"❌ {e}", style="red bold")
        sys.exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)


def _display_sync_results(stats: SyncStats, bytes_considered: int):
    """Display sync statistics in a table."""
    table = Table(title="Sync Results")
    table.add_column("Files Uploaded", justify="right", style="green")
    table.add_column("Up To Date", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Folders Created", justify="right")
    table.add_column("Remote Deleted", justify="right")
    table.add_column("Data Uploaded", justify="right")
    table.add_column("Duration", justify="right")

    table.add_row(
        str(stats.files_uploaded),
        str(stats.files_skipped),
        str(stats.files_failed),
        str(stats.folders_created),
        str(stats.remote_deleted),
        format_file_size(stats.bytes_uploaded),
        f"{stats.duration:.1f}s",
    )
    console.print(table)
    rprint(f"\n📊 [bold]Bytes considered:[/bold] {format_file_size(bytes_considered)}")

    if stats.files_failed:
        rprint(f"⚠️ [yellow]{stats.files_failed} uploads failed, see the log; they are retried next run[/yellow]")


@cli.command()
@credentials_option
def login(credentials: Path):
    """Authorize access to Google Drive and store the token."""
    try:
        creds_config = _load_credentials(credentials)
        auth = GoogleDriveAuth(creds_config.client_secret_file, creds_config.token_file)
        auth.authenticate(interactive=True)
        console.print(f"✅ Token stored in {creds_config.token_file}", style="green")
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)


@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=Path('config/app.yml'),
              help='Path to save configuration file')
@click.option('--local-root', prompt='Local folder to sync',
              type=click.Path(file_okay=False, path_type=Path),
              help='Local folder to mirror')
@click.option('--remote-root', prompt='Google Drive folder ID',
              help='ID of the Drive folder receiving the files')
def init(config: Path, local_root: Path, remote_root: str):
    """Initialize a new configuration file."""
    if config.exists():
        if not click.confirm(f"Configuration file {config} already exists. Overwrite?"):
            return

    sync_config = SyncConfig(local_root_folder=local_root, remote_root_folder_id=remote_root)
    sync_config.to_yaml(config)

    console.print(f"✅ Configuration saved to {config}", style="green")
    console.print("\n📝 Next steps:")
    console.print("1. Download an OAuth client secret to config/client_secret.json")
    console.print("2. Run 'gdrive-sync login' to authorize access")
    console.print("3. Run 'gdrive-sync sync' to start syncing")


@cli.command()
@config_option
def status(config: Path):
    """Show configuration and sync state summary."""
    try:
        sync_config = SyncConfig.from_yaml(config)

        rprint("📁 [bold]Local root:[/bold] " + str(sync_config.local_root_folder))
        rprint("☁️ [bold]Remote root:[/bold] " + sync_config.remote_root_folder_id)
        rprint(f"⚙️ [bold]Max concurrency:[/bold] {sync_config.max_concurrency}")

        sync_state = SyncState(sync_config.state_file, path_prefix=sync_config.local_root_folder)
        sync_state.load()
        stats = sync_state.get_stats()

        table = Table(title=f"Sync State ({sync_config.state_file})")
        table.add_column("Entries", justify="right", style="cyan")
        table.add_column("Synced", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")
        table.add_column("Folders", justify="right")
        table.add_column("Size", justify="right")
        table.add_row(
            str(stats['total_entries']),
            str(stats['ok_entries']),
            str(stats['failed_entries']),
            str(stats['folders']),
            format_file_size(stats['total_size']),
        )
        console.print(table)

    except Exception as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)


if __name__ == '__main__':
    cli()
