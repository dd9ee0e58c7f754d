"""Directory-to-object-store synchronization engine."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from rich.console import Console
from rich.table import Table

from seed_sync.errors import (
    DeleteFailed,
    DirectoryUnreadable,
    SeedSyncError,
    UploadFailed,
)
from seed_sync.file_sync.object_store import ObjectStore
from seed_sync.file_sync.reconciler import Plan, ReconciliationPolicy, reconcile


class SyncState(str, Enum):
    """Stage of a synchronization run."""

    IDLE = "idle"
    LISTING = "listing"
    RECONCILING = "reconciling"
    DELETING = "deleting"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ItemResult:
    """Outcome of a single delete or upload."""

    name: str
    action: str
    success: bool
    error: Optional[str] = None
    removed: int = 0


@dataclass
class SyncReport:
    """Structured result of one synchronization run."""

    policy: ReconciliationPolicy
    plan: Plan
    state: SyncState = SyncState.DONE
    results: List[ItemResult] = field(default_factory=list)
    dry_run: bool = False

    def _count(self, action: str) -> int:
        return sum(1 for r in self.results if r.action == action and r.success)

    @property
    def deleted(self) -> int:
        return self._count("delete")

    @property
    def uploaded(self) -> int:
        return self._count("upload")

    @property
    def failures(self) -> List[ItemResult]:
        return [r for r in self.results if not r.success]

    def outcomes(self, action: str) -> Dict[str, bool]:
        """Map of item name to success for the given action."""
        return {r.name: r.success for r in self.results if r.action == action}


def list_local_files(local_path: Path, pattern: str = "*") -> Dict[str, Path]:
    """List regular files directly inside ``local_path``, keyed by file name."""
    if not local_path.is_dir():
        raise DirectoryUnreadable(local_path, FileNotFoundError("not a directory"))
    try:
        return {
            file_path.name: file_path
            for file_path in sorted(local_path.glob(pattern))
            if file_path.is_file()
        }
    except OSError as e:
        raise DirectoryUnreadable(local_path, e) from e


class FileSync:
    """Synchronize a local directory into an object store under a policy.

    Runs list -> reconcile -> delete -> upload sequentially. A failing
    listing aborts the run before anything is mutated; a failing delete or
    upload is recorded and the run moves on to the next item.
    """

    def __init__(
        self,
        store: ObjectStore,
        policy: ReconciliationPolicy = ReconciliationPolicy.UPDATE_ONLY,
        include: str = "*",
        console: Optional[Console] = None,
    ):
        """Initialize the sync engine."""
        self.store = store
        self.policy = ReconciliationPolicy(policy)
        self.include = include
        self.console = console or Console()
        self.state = SyncState.IDLE

    def sync(self, local_path: Union[str, Path], dry_run: bool = False) -> SyncReport:
        """
        Synchronize ``local_path`` into the object store.

        Args:
            local_path: Directory holding the files to publish
            dry_run: Show the plan without deleting or uploading anything

        Returns:
            SyncReport with the plan and per-item results

        Raises:
            StoreUnavailable: The store could not be listed
            DirectoryUnreadable: The local directory could not be listed
        """
        local_path = Path(local_path)
        self.console.print(f"[bright_black]Local Path: {local_path}[/bright_black]")
        self.console.print(f"[bright_black]Object Store: {self.store.describe()}[/bright_black]")
        self.console.print(f"[bright_black]Policy: {self.policy.value}[/bright_black]")

        try:
            self.state = SyncState.LISTING
            stored_names = self.store.list_names()
            local_files = list_local_files(local_path, self.include)
        except SeedSyncError:
            self.state = SyncState.FAILED
            raise

        self.state = SyncState.RECONCILING
        plan = reconcile(stored_names, local_files.keys(), self.policy)
        report = SyncReport(policy=self.policy, plan=plan, dry_run=dry_run)

        if plan.is_empty:
            self.console.print(
                f"Found {len(local_files)} local files and {len(stored_names)} stored objects - nothing to do"
            )
            self.state = report.state = SyncState.DONE
            return report

        self._display_plan(plan, dry_run)

        if dry_run:
            self.state = report.state = SyncState.DONE
            return report

        self.state = SyncState.DELETING
        for name in plan.to_delete:
            report.results.append(self._delete_one(name))

        self.state = SyncState.UPLOADING
        for name in plan.to_upload:
            report.results.append(self._upload_one(name, local_files[name]))

        self.state = report.state = SyncState.DONE
        return report

    def _delete_one(self, name: str) -> ItemResult:
        try:
            removed = self.store.delete(name)
        except DeleteFailed as e:
            self.console.print(f"[red]Failed to delete {name}: {e.cause}[/red]")
            return ItemResult(name=name, action="delete", success=False, error=str(e.cause))

        if removed:
            self.console.print(f"[green]Deleted: {name}[/green]")
        else:
            self.console.print(f"[bright_black]Already absent: {name}[/bright_black]")
        return ItemResult(name=name, action="delete", success=True, removed=removed)

    def _upload_one(self, name: str, file_path: Path) -> ItemResult:
        try:
            with open(file_path, "rb") as stream:
                self.store.upload(name, stream)
        except UploadFailed as e:
            self.console.print(f"[red]Failed to upload {name}: {e.cause}[/red]")
            return ItemResult(name=name, action="upload", success=False, error=str(e.cause))
        except OSError as e:
            # Local file vanished or became unreadable after listing
            self.console.print(f"[red]Failed to upload {name}: {e}[/red]")
            return ItemResult(name=name, action="upload", success=False, error=str(e))

        self.console.print(f"[green]Uploaded: {name}[/green]")
        return ItemResult(name=name, action="upload", success=True)

    def _display_plan(self, plan: Plan, dry_run: bool) -> None:
        """Display the sync plan to the user."""
        verb = "Would" if dry_run else "Will"

        self.console.print(f"\n[bold green]Sync Plan[/bold green]")

        table = Table(border_style="bright_black")
        table.add_column("File", style="bright_black")
        table.add_column("Action", style="bright_black")

        for name in plan.to_delete:
            table.add_row(name, "delete")
        for name in plan.to_upload:
            table.add_row(name, "upload")

        self.console.print(table)
        self.console.print(
            f"\n[bold]{verb} delete {len(plan.to_delete)} and upload {len(plan.to_upload)} files[/bold]"
        )
