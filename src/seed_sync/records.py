"""Seed records: loading the dataset and writing it to MongoDB."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Set, Union

import yaml
from pydantic import BaseModel, Field, ValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError

from seed_sync.errors import SeedDataError, StoreUnavailable

Record = Dict[str, Any]

SEQ_COLLECTION = "seq"


class SeedDataset(BaseModel):
    """Records to insert, keyed by collection name."""

    collections: Dict[str, List[Record]] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(records) for records in self.collections.values())

    def assign_sequence_ids(self, next_seq: Callable[[str], int]) -> None:
        """Give every record without an ``_id`` the next number of its collection's sequence."""
        for name, records in self.collections.items():
            for record in records:
                if "_id" not in record:
                    record["_id"] = next_seq(name)


def parse_dataset(raw: Any) -> SeedDataset:
    """Validate a decoded document as a dataset."""
    if raw is None:
        return SeedDataset()
    if not isinstance(raw, Mapping):
        raise SeedDataError(f"Seed data must be a mapping of collection name to records, got {type(raw).__name__}")
    try:
        return SeedDataset(collections=dict(raw))
    except ValidationError as e:
        raise SeedDataError(f"Invalid seed data: {e}") from e


def load_dataset(path: Union[str, Path]) -> SeedDataset:
    """Load a dataset from a YAML (.yaml/.yml) or JSON (.json) file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                text = f.read()
                raw = json.loads(text) if text.strip() else None
            else:
                raw = yaml.safe_load(f)
    except OSError as e:
        raise SeedDataError(f"Cannot read seed data {path}: {e}") from e
    except (yaml.YAMLError, ValueError) as e:
        raise SeedDataError(f"Cannot parse seed data {path}: {e}") from e

    return parse_dataset(raw)


class MongoRecordStore:
    """Collection level operations on the seeded database."""

    def __init__(self, database: Database):
        self.database = database

    def bulk_insert(self, collection: str, records: Sequence[Record]) -> int:
        if not records:
            return 0
        try:
            result = self.database[collection].insert_many(list(records), ordered=True)
        except BulkWriteError as e:
            raise SeedDataError(f"Rejected records in {collection}: {e.details.get('writeErrors', [])[:1]}") from e
        except PyMongoError as e:
            raise StoreUnavailable(f"Cannot insert into {collection}: {e}") from e
        return len(result.inserted_ids)

    def list_collections(self) -> Set[str]:
        try:
            return set(self.database.list_collection_names())
        except PyMongoError as e:
            raise StoreUnavailable(f"Cannot list collections: {e}") from e

    def drop_collection(self, name: str) -> None:
        try:
            self.database.drop_collection(name)
        except PyMongoError as e:
            raise StoreUnavailable(f"Cannot drop {name}: {e}") from e

    def drop_all(self) -> List[str]:
        """Drop every collection, including object store collections."""
        return self.drop_all_except(())

    def drop_all_except(self, keep: Iterable[str]) -> List[str]:
        """Drop every collection not named in ``keep``; return the dropped names."""
        keep = set(keep)
        dropped = []
        for name in sorted(self.list_collections()):
            if name in keep or name.startswith("system."):
                continue
            self.drop_collection(name)
            dropped.append(name)
        return dropped

    def next_seq(self, name: str) -> int:
        """Atomically increment and return the counter for ``name``."""
        try:
            doc = self.database[SEQ_COLLECTION].find_one_and_update(
                {"_id": name},
                {"$inc": {"no": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StoreUnavailable(f"Cannot advance sequence {name}: {e}") from e
        return doc["no"]
