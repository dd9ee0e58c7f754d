"""Configuration for seed-sync runs."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from typing_extensions import Literal

from seed_sync.config_manager import load_config
from seed_sync.errors import ConfigurationError
from seed_sync.file_sync.reconciler import ReconciliationPolicy

DATA_FILE_NAMES = ("data.yaml", "data.yml", "data.json")
UPLOAD_DIR_NAME = "uploadFiles"

# Environment variable -> (section, field)
ENV_OVERRIDES = {
    "SEED_MONGO_URI": ("mongo", "uri"),
    "SEED_DATABASE": ("mongo", "database"),
    "SEED_CLIENT_ID": ("seed", "client_id"),
    "SEED_TARGET_DIR": ("seed", "target_dir"),
    "SEED_IMAGE_UPLOAD": ("storage", "policy"),
    "SEED_STORAGE_BACKEND": ("storage", "backend"),
    "SEED_BUCKET": ("storage", "bucket_name"),
    "SEED_S3_PATH": ("storage", "s3_path"),
    "SEED_AWS_PROFILE": ("aws", "profile"),
    "SEED_AWS_REGION": ("aws", "region"),
}


class MongoConfig(BaseModel):
    uri: str = "mongodb://localhost:27017"
    database: str = "seed"
    server_selection_timeout_ms: int = Field(5000, ge=0)


class StorageConfig(BaseModel):
    backend: Literal["gridfs", "s3"] = "gridfs"
    bucket_name: str = "upload"
    s3_path: Optional[str] = None
    policy: ReconciliationPolicy = ReconciliationPolicy.UPDATE_ONLY
    include: str = "*"


class AWSConfig(BaseModel):
    profile: Optional[str] = None
    region: str = "us-east-1"


class SeedConfig(BaseModel):
    target_dir: str = "sample"
    client_id: Optional[str] = None
    sequence_ids: bool = False


class Config(BaseModel):
    """Top-level configuration, assembled once per process."""

    mongo: MongoConfig = Field(default_factory=MongoConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)
    verbose: bool = False

    @property
    def database_name(self) -> str:
        if self.seed.client_id:
            return f"{self.mongo.database}-{self.seed.client_id}"
        return self.mongo.database

    @property
    def target_path(self) -> Path:
        return Path(self.seed.target_dir)

    @property
    def upload_dir(self) -> Path:
        return self.target_path / UPLOAD_DIR_NAME

    @property
    def data_file(self) -> Path:
        """First existing seed data file in the target directory."""
        for name in DATA_FILE_NAMES:
            candidate = self.target_path / name
            if candidate.exists():
                return candidate
        return self.target_path / DATA_FILE_NAMES[0]

    @classmethod
    def from_env(cls) -> "Config":
        """Build configuration from SEED_* environment variables."""
        return cls(**_apply_env({}))

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Config":
        """Load a YAML config file (if present), then apply environment overrides."""
        data: Dict[str, Any] = {}
        if path is not None:
            data = load_config(Path(path)) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls(**_apply_env(data))


def load_env_files(base_dir: Union[str, Path] = ".") -> None:
    """Load ``.env`` and then ``.env.<SEED_ENV>`` on top of it."""
    base_dir = Path(base_dir)
    load_dotenv(base_dir / ".env")
    environment = os.getenv("SEED_ENV")
    if environment:
        load_dotenv(base_dir / f".env.{environment}", override=True)


def _apply_env(data: Dict[str, Any]) -> Dict[str, Any]:
    merged = {section: dict(values) for section, values in data.items() if isinstance(values, dict)}
    for key, value in data.items():
        if not isinstance(value, dict):
            merged[key] = value

    for env_var, (section, name) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            merged.setdefault(section, {})[name] = value

    verbose = os.getenv("SEED_VERBOSE")
    if verbose:
        merged["verbose"] = verbose.lower() in ("1", "true", "yes")

    return merged
