"""Exceptions raised by the seeding and file synchronization steps."""

from pathlib import Path
from typing import Optional, Union


class SeedSyncError(Exception):
    """Base class for all seed-sync errors."""


class ConfigurationError(SeedSyncError):
    """Configuration is missing or inconsistent."""


class SeedDataError(SeedSyncError):
    """Seed data file could not be read or has the wrong shape."""


class StoreUnavailable(SeedSyncError):
    """The backing store could not be reached. Aborts the run."""


class DirectoryUnreadable(SeedSyncError):
    """The local upload directory is missing or cannot be listed. Aborts the run."""

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Cannot read directory {self.path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ObjectStoreError(SeedSyncError):
    """A single object operation failed. Recoverable: the run skips the item."""

    action = "process"

    def __init__(self, name: str, cause: Optional[BaseException] = None):
        self.name = name
        self.cause = cause
        message = f"Failed to {self.action} {name}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class UploadFailed(ObjectStoreError):
    action = "upload"


class DeleteFailed(ObjectStoreError):
    action = "delete"


class DownloadFailed(ObjectStoreError):
    action = "download"
