"""Seed Sync - MongoDB seeding with GridFS upload-bucket synchronization."""

__version__ = "0.1.0"
__author__ = "Seed Sync Team"

from seed_sync.config import Config
from seed_sync.file_sync import FileSync, ReconciliationPolicy
from seed_sync.seeder import DatabaseSeeder

__all__ = ["Config", "DatabaseSeeder", "FileSync", "ReconciliationPolicy", "__version__"]
