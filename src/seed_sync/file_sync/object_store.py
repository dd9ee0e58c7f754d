"""Named binary object storage backends used by the file synchronizer."""

from typing import BinaryIO, Optional, Set, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo.database import Database
from pymongo.errors import PyMongoError

from seed_sync.errors import (
    ConfigurationError,
    DeleteFailed,
    DownloadFailed,
    StoreUnavailable,
    UploadFailed,
)


class ObjectStore:
    """Interface of a bucket of named binary objects."""

    @property
    def reserved_collections(self) -> Set[str]:
        """Database collections owned by this store."""
        return set()

    def list_names(self) -> Set[str]:
        raise NotImplementedError

    def upload(self, name: str, stream: BinaryIO) -> None:
        raise NotImplementedError

    def delete(self, name: str) -> int:
        raise NotImplementedError

    def download(self, name: str, stream: BinaryIO) -> None:
        raise NotImplementedError

    def describe(self) -> str:
        return self.__class__.__name__


class GridFSObjectStore(ObjectStore):
    """Object store backed by a MongoDB GridFS bucket.

    GridFS does not enforce unique filenames: uploading a name twice keeps
    both objects, told apart only by their ``_id``.
    """

    def __init__(self, database: Database, bucket_name: str = "upload"):
        self.database = database
        self.bucket_name = bucket_name

        # Bucket is created lazily so tests can substitute the database
        self._bucket = None

    @property
    def bucket(self) -> GridFSBucket:
        """Get the GridFS bucket, creating it on first use."""
        if self._bucket is None:
            self._bucket = GridFSBucket(self.database, bucket_name=self.bucket_name)
        return self._bucket

    @property
    def files_collection(self):
        return self.database[f"{self.bucket_name}.files"]

    @property
    def reserved_collections(self) -> Set[str]:
        return {f"{self.bucket_name}.files", f"{self.bucket_name}.chunks"}

    def describe(self) -> str:
        return f"gridfs://{self.database.name}/{self.bucket_name}"

    def list_names(self) -> Set[str]:
        try:
            cursor = self.files_collection.find({}, {"filename": 1})
            return {doc["filename"] for doc in cursor if doc.get("filename")}
        except PyMongoError as e:
            raise StoreUnavailable(f"Cannot list GridFS bucket '{self.bucket_name}': {e}") from e

    def upload(self, name: str, stream: BinaryIO) -> None:
        try:
            self.bucket.upload_from_stream(name, stream)
        except (PyMongoError, OSError) as e:
            raise UploadFailed(name, e) from e

    def delete(self, name: str) -> int:
        removed = 0
        try:
            for doc in self.files_collection.find({"filename": name}, {"_id": 1}):
                try:
                    self.bucket.delete(doc["_id"])
                except NoFile:
                    # Removed by someone else between find and delete
                    continue
                removed += 1
        except PyMongoError as e:
            raise DeleteFailed(name, e) from e
        return removed

    def download(self, name: str, stream: BinaryIO) -> None:
        try:
            self.bucket.download_to_stream_by_name(name, stream)
        except (NoFile, PyMongoError, OSError) as e:
            raise DownloadFailed(name, e) from e


class S3ObjectStore(ObjectStore):
    """Object store backed by the keys under an S3 prefix.

    S3 overwrites keys in place, so repeated uploads never duplicate a name.
    """

    def __init__(self, s3_path: str, profile: Optional[str] = None, region: Optional[str] = None):
        self.s3_path = s3_path
        self.profile = profile
        self.region = region
        self.bucket_name, self.prefix = self._parse_s3_path(s3_path)

        # AWS clients will be created lazily to use current config
        self._s3_client = None

    @property
    def s3_client(self) -> boto3.client:
        """Get S3 client, creating it lazily with current config."""
        if self._s3_client is None:
            session = boto3.Session(profile_name=self.profile)
            self._s3_client = session.client('s3', region_name=self.region)
        return self._s3_client

    def _reset_aws_clients(self) -> None:
        """Reset AWS clients to pick up config changes."""
        self._s3_client = None

    def describe(self) -> str:
        return self.s3_path

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def list_names(self) -> Set[str]:
        names = set()
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=self.prefix):
                for obj in page.get("Contents", []):
                    name = obj["Key"][len(self.prefix):]
                    # skip "directory markers" and nested keys
                    if name and "/" not in name:
                        names.add(name)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"Cannot list {self.s3_path}: {e}") from e
        return names

    def upload(self, name: str, stream: BinaryIO) -> None:
        try:
            self.s3_client.upload_fileobj(stream, self.bucket_name, self._key(name))
        except (BotoCoreError, ClientError, OSError) as e:
            raise UploadFailed(name, e) from e

    def delete(self, name: str) -> int:
        key = self._key(name)
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            if error_code in ['NoSuchKey', 'NotFound', '404']:
                return 0
            raise DeleteFailed(name, e) from e
        except BotoCoreError as e:
            raise DeleteFailed(name, e) from e

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise DeleteFailed(name, e) from e
        return 1

    def download(self, name: str, stream: BinaryIO) -> None:
        try:
            self.s3_client.download_fileobj(self.bucket_name, self._key(name), stream)
        except (BotoCoreError, ClientError, OSError) as e:
            raise DownloadFailed(name, e) from e

    @staticmethod
    def _parse_s3_path(s3_path: str) -> Tuple[str, str]:
        """Parse S3 path into bucket and a prefix ending in '/' (or empty)."""
        if not s3_path.startswith("s3://"):
            raise ConfigurationError("S3 path must start with s3://")

        path_parts = s3_path[5:].split("/", 1)
        bucket = path_parts[0]
        prefix = path_parts[1].strip("/") if len(path_parts) > 1 else ""
        if not bucket:
            raise ConfigurationError(f"S3 path has no bucket: {s3_path}")
        if prefix:
            prefix += "/"

        return bucket, prefix


def build_object_store(config, database: Optional[Database] = None) -> ObjectStore:
    """Create the object store selected by ``config.storage.backend``."""
    storage = config.storage
    if storage.backend == "gridfs":
        if database is None:
            raise ConfigurationError("GridFS storage needs a database connection")
        return GridFSObjectStore(database, storage.bucket_name)
    if storage.backend == "s3":
        if not storage.s3_path:
            raise ConfigurationError("S3 storage needs storage.s3_path (s3://bucket/prefix)")
        return S3ObjectStore(storage.s3_path, profile=config.aws.profile, region=config.aws.region)
    raise ConfigurationError(f"Unknown storage backend: {storage.backend}")
