"""Database seeding run: reset collections, insert records, sync files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from rich.console import Console

from seed_sync.file_sync import FileSync, ReconciliationPolicy, SyncReport
from seed_sync.records import MongoRecordStore, SeedDataset


@dataclass
class SeedReport:
    """Collections dropped, records inserted and the file sync outcome of one run."""

    dropped: List[str] = field(default_factory=list)
    inserted: Dict[str, int] = field(default_factory=dict)
    sync: Optional[SyncReport] = None
    dry_run: bool = False

    @property
    def total_inserted(self) -> int:
        return sum(self.inserted.values())


class DatabaseSeeder:
    """Seed a database and its file bucket in one sequential run.

    Under the ``always`` policy the whole database is cleared, bucket
    included. Otherwise the object store's own collections survive the
    reset so the file sync can reconcile against them.
    """

    def __init__(
        self,
        record_store: MongoRecordStore,
        file_sync: FileSync,
        sequence_ids: bool = False,
        console: Optional[Console] = None,
    ):
        self.record_store = record_store
        self.file_sync = file_sync
        self.sequence_ids = sequence_ids
        self.console = console or Console()

    @property
    def policy(self) -> ReconciliationPolicy:
        return self.file_sync.policy

    def seed(self, dataset: SeedDataset, upload_dir: Union[str, Path], dry_run: bool = False) -> SeedReport:
        report = SeedReport(dry_run=dry_run)

        self.console.print("[bold blue]Step 1: Resetting collections...[/bold blue]")
        if dry_run:
            self.console.print("[bright_black]Skipped (dry run)[/bright_black]")
        else:
            report.dropped = self._reset()
            for name in report.dropped:
                self.console.print(f"[bright_black]Dropped: {name}[/bright_black]")

        if self.sequence_ids and not dry_run:
            # Counters live in a regular collection, so they restart after the reset
            dataset.assign_sequence_ids(self.record_store.next_seq)

        self.console.print("[bold blue]Step 2: Inserting records...[/bold blue]")
        for collection, records in dataset.collections.items():
            if dry_run:
                count = len(records)
            else:
                count = self.record_store.bulk_insert(collection, records)
            report.inserted[collection] = count
            self.console.print(f"{collection}: {count} record(s)")

        self.console.print("[bold blue]Step 3: Synchronizing files...[/bold blue]")
        report.sync = self.file_sync.sync(upload_dir, dry_run=dry_run)

        return report

    def _reset(self) -> List[str]:
        if self.policy is ReconciliationPolicy.ALWAYS_UPLOAD:
            return self.record_store.drop_all()
        return self.record_store.drop_all_except(self.file_sync.store.reserved_collections)
