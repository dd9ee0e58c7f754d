"""Command-line interface for seed-sync."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

import typer
import yaml
from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from rich.console import Console

from seed_sync import __version__
from seed_sync.config import Config, load_env_files
from seed_sync.config_manager import get_config_path, load_config, save_config
from seed_sync.errors import ConfigurationError, ObjectStoreError, SeedSyncError
from seed_sync.file_sync import FileSync, ObjectStore, ReconciliationPolicy, SyncReport, build_object_store
from seed_sync.records import MongoRecordStore, load_dataset
from seed_sync.seeder import DatabaseSeeder, SeedReport

app = typer.Typer(
    name="seed-sync",
    help="Seed a MongoDB database and synchronize its upload bucket",
    no_args_is_help=True,
)
console = Console()

EXIT_FAILURE = 1
EXIT_ITEM_FAILURES = 2


# Color constants for consistent styling
class Colors:
    RED = "[red]"
    GREEN = "[green]"
    YELLOW = "[yellow]"
    RESET = "[/red]"
    GREEN_RESET = "[/green]"
    YELLOW_RESET = "[/yellow]"


# Message templates for consistent formatting
class Messages:
    CONFIG_LOAD_ERROR = "Error loading configuration: {error}"
    SEED_ERROR = "Seeding failed: {error}"
    SYNC_ERROR = "Sync failed: {error}"
    DOWNLOAD_ERROR = "Download failed: {error}"
    ITEM_FAILURES = "{count} file operation(s) failed: {names}"
    UNSAFE_NAME = "Skipped {name}: not a plain file name"
    CONNECT_ERROR = "Invalid MongoDB connection settings: {error}"

    CONFIG_SAVED = "Configuration saved to {path}"
    CONFIG_MISSING = "No configuration file at {path}"

    DRY_RUN_COMPLETED = "Dry run completed"
    SEED_COMPLETED = "Seeding completed"
    SYNC_COMPLETED = "Sync completed"


def error_msg(message: str) -> str:
    """Format error message with consistent styling."""
    return f"{Colors.RED}{message}{Colors.RESET}"


def success_msg(message: str) -> str:
    """Format success message with consistent styling."""
    return f"{Colors.GREEN}{message}{Colors.GREEN_RESET}"


def warning_msg(message: str) -> str:
    return f"{Colors.YELLOW}{message}{Colors.YELLOW_RESET}"


def format_count(count: int, action: str, noun: str = "file") -> str:
    """Format a count line such as 'Uploaded 3 file(s)'."""
    return f"{action} {count} {noun}(s)"


def _load_and_configure(
    config_file: Optional[str] = None,
    target_dir: Optional[str] = None,
    client_id: Optional[str] = None,
    policy: Optional[ReconciliationPolicy] = None,
) -> Config:
    """Load configuration and apply command-line overrides."""
    path = Path(config_file) if config_file else get_config_path()
    try:
        config = Config.load(path)
    except (ValidationError, yaml.YAMLError, OSError, SeedSyncError) as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(EXIT_FAILURE)

    if target_dir:
        config.seed.target_dir = target_dir
    if client_id:
        config.seed.client_id = client_id
    if policy:
        config.storage.policy = policy
    return config


@contextmanager
def _connect(config: Config) -> Iterator[Tuple[MongoClient, Database]]:
    """Open the MongoDB connection for one command and close it afterwards."""
    try:
        client = MongoClient(
            config.mongo.uri,
            serverSelectionTimeoutMS=config.mongo.server_selection_timeout_ms,
        )
    except (PyMongoError, ValueError) as e:
        # Malformed URI or options; the client does not connect until first use
        raise ConfigurationError(Messages.CONNECT_ERROR.format(error=e)) from e
    try:
        yield client, client[config.database_name]
    finally:
        client.close()


def _initialize_file_sync(config: Config, store: ObjectStore) -> FileSync:
    return FileSync(store, policy=config.storage.policy, include=config.storage.include, console=console)


def _display_sync_report(report: SyncReport) -> None:
    if report.dry_run:
        plan = report.plan
        console.print(format_count(len(plan.to_delete), "Would delete"))
        console.print(format_count(len(plan.to_upload), "Would upload"))
        return

    console.print(format_count(report.deleted, "Deleted"))
    console.print(format_count(report.uploaded, "Uploaded"))
    if report.failures:
        names = ", ".join(f"{r.name} ({r.action})" for r in report.failures)
        console.print(warning_msg(Messages.ITEM_FAILURES.format(count=len(report.failures), names=names)))


def _display_seed_report(report: SeedReport) -> None:
    action = "Would insert" if report.dry_run else "Inserted"
    console.print()
    console.print(format_count(report.total_inserted, action, noun="record"))
    if report.sync is not None:
        _display_sync_report(report.sync)


def _finish(sync_report: Optional[SyncReport], dry_run: bool, strict: bool, done: str) -> None:
    console.print(success_msg(Messages.DRY_RUN_COMPLETED if dry_run else done))
    console.print()
    if strict and sync_report is not None and sync_report.failures:
        raise typer.Exit(EXIT_ITEM_FAILURES)


@app.command()
def seed(
    target_dir: Optional[str] = typer.Option(None, help="Directory holding data.yaml and uploadFiles/"),
    client_id: Optional[str] = typer.Option(None, help="Client id, appended to the database name"),
    policy: Optional[ReconciliationPolicy] = typer.Option(None, help="File upload policy"),
    config_file: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    dry_run: bool = typer.Option(False, help="Show what would change without writing"),
    strict: bool = typer.Option(False, help="Exit with code 2 if any file operation failed"),
    verbose: bool = typer.Option(False, help="Verbose output"),
) -> None:
    """Reset the database, insert seed records and synchronize upload files."""
    config = _load_and_configure(config_file, target_dir, client_id, policy)

    try:
        dataset = load_dataset(config.data_file)
        with _connect(config) as (_, database):
            record_store = MongoRecordStore(database)
            store = build_object_store(config, database)
            seeder = DatabaseSeeder(
                record_store,
                _initialize_file_sync(config, store),
                sequence_ids=config.seed.sequence_ids,
                console=console,
            )
            report = seeder.seed(dataset, config.upload_dir, dry_run=dry_run)
    except SeedSyncError as e:
        console.print(error_msg(Messages.SEED_ERROR.format(error=e)))
        if verbose or config.verbose:
            console.print_exception()
        raise typer.Exit(EXIT_FAILURE)

    _display_seed_report(report)
    _finish(report.sync, dry_run, strict, Messages.SEED_COMPLETED)


@app.command("sync-files")
def sync_files(
    local_path: Optional[str] = typer.Option(None, help="Directory to publish (defaults to <target-dir>/uploadFiles)"),
    policy: Optional[ReconciliationPolicy] = typer.Option(None, help="File upload policy"),
    config_file: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    dry_run: bool = typer.Option(False, help="Show the plan without changing the store"),
    strict: bool = typer.Option(False, help="Exit with code 2 if any file operation failed"),
    verbose: bool = typer.Option(False, help="Verbose output"),
) -> None:
    """Synchronize the upload directory with the object store only."""
    config = _load_and_configure(config_file, policy=policy)
    source = Path(local_path).resolve() if local_path else config.upload_dir

    try:
        with _connect(config) as (_, database):
            file_sync = _initialize_file_sync(config, build_object_store(config, database))
            report = file_sync.sync(source, dry_run=dry_run)
    except SeedSyncError as e:
        console.print(error_msg(Messages.SYNC_ERROR.format(error=e)))
        if verbose or config.verbose:
            console.print_exception()
        raise typer.Exit(EXIT_FAILURE)

    _display_sync_report(report)
    _finish(report, dry_run, strict, Messages.SYNC_COMPLETED)


def _is_plain_file_name(name: str) -> bool:
    """True if ``name`` is a single path component that cannot leave its directory."""
    return bool(name) and name not in (".", "..") and Path(name).name == name and "\\" not in name


def _download_one(store: ObjectStore, target: Path, name: str) -> bool:
    """Download one object into ``target``; report and clean up on failure."""
    if not _is_plain_file_name(name):
        console.print(error_msg(Messages.UNSAFE_NAME.format(name=name)))
        return False

    destination = target / name
    try:
        with open(destination, "wb") as stream:
            store.download(name, stream)
    except (ObjectStoreError, OSError) as e:
        console.print(error_msg(f"Failed to download {name}: {e}"))
        # Leave no empty or partial file behind
        if destination.is_file():
            destination.unlink()
        return False

    console.print(f"[green]Downloaded: {name}[/green]")
    return True


@app.command()
def download(
    destination: str = typer.Argument(help="Directory to write stored objects into"),
    config_file: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
) -> None:
    """Download every stored object into a local directory."""
    config = _load_and_configure(config_file)
    target = Path(destination)
    target.mkdir(parents=True, exist_ok=True)

    failed = 0
    try:
        with _connect(config) as (_, database):
            store = build_object_store(config, database)
            names = sorted(store.list_names())
            for name in names:
                if not _download_one(store, target, name):
                    failed += 1
    except SeedSyncError as e:
        console.print(error_msg(Messages.DOWNLOAD_ERROR.format(error=e)))
        raise typer.Exit(EXIT_FAILURE)

    console.print(format_count(len(names) - failed, "Downloaded"))
    if failed:
        raise typer.Exit(EXIT_ITEM_FAILURES)


@app.command("config-init")
def config_init(
    mongo_uri: str = typer.Option("mongodb://localhost:27017", help="MongoDB connection URI"),
    database: str = typer.Option("seed", help="Database name"),
    target_dir: str = typer.Option("sample", help="Seed target directory"),
    policy: ReconciliationPolicy = typer.Option(ReconciliationPolicy.UPDATE_ONLY, help="File upload policy"),
) -> None:
    """Write the user configuration file."""
    config_path = get_config_path()
    save_config(config_path, {
        "mongo": {"uri": mongo_uri, "database": database},
        "storage": {"policy": policy.value},
        "seed": {"target_dir": target_dir},
    })
    console.print(success_msg(Messages.CONFIG_SAVED.format(path=config_path)))


@app.command("config-show")
def config_show() -> None:
    """Print the user configuration file."""
    config_path = get_config_path()
    data = load_config(config_path)
    if data is None:
        console.print(warning_msg(Messages.CONFIG_MISSING.format(path=config_path)))
        raise typer.Exit(EXIT_FAILURE)
    console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"seed-sync {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version"),
) -> None:
    """Seed a MongoDB database and synchronize its upload bucket."""


def main() -> None:
    """Main entry point for the CLI."""
    load_env_files()
    app()


if __name__ == "__main__":
    main()
