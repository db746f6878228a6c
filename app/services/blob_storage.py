"""
Object storage for video blobs. Paths are namespaced by owner:
{owner_id}/{video_id}/original.mp4, so ownership is derivable from the path alone.
Deleting an absent object succeeds; both backends are convergent under re-runs.
"""
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO, Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, get_settings
from app.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB
VIDEO_OBJECT_NAME = "original.mp4"
THUMBNAIL_OBJECT_NAME = "thumbnail.jpg"


def video_blob_path(owner_id: str, video_id: str) -> str:
    return f"{owner_id}/{video_id}/{VIDEO_OBJECT_NAME}"


def thumbnail_blob_path(owner_id: str, video_id: str) -> str:
    return f"{owner_id}/{video_id}/{THUMBNAIL_OBJECT_NAME}"


def owner_from_path(path: str) -> str:
    """First path segment is the owner id."""
    return path.split("/", 1)[0]


class BlobStorage(ABC):
    @abstractmethod
    def put(self, path: str, data: BinaryIO, content_type: str) -> None:
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the object. Missing objects are not an error."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def size(self, path: str) -> int:
        ...

    @abstractmethod
    def iter_range(self, path: str, start: int, end: int) -> Iterator[bytes]:
        """
        Iterator over bytes start..end inclusive. The object is opened before
        returning, so read failures raise here and not mid-response.
        """


def _read_chunks(f: BinaryIO, remaining: int) -> Iterator[bytes]:
    with f:
        while remaining > 0:
            data = f.read(min(CHUNK_SIZE, remaining))
            if not data:
                break
            remaining -= len(data)
            yield data


class LocalBlobStorage(BlobStorage):
    """Filesystem backend rooted at one directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        base = self.root.resolve()
        full = (base / path).resolve()
        try:
            full.relative_to(base)  # raises ValueError if path escaped
        except ValueError:
            raise UpstreamUnavailable(f"Invalid storage path: {path}") from None
        return full

    def put(self, path: str, data: BinaryIO, content_type: str) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as f:
                while chunk := data.read(CHUNK_SIZE):
                    f.write(chunk)
        except OSError as e:
            # no partial blob left behind
            try:
                target.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove partial blob %s", path)
            raise UpstreamUnavailable(f"Could not write {path}") from e

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise UpstreamUnavailable(f"Could not delete {path}") from e
        # drop the empty {owner}/{video} folder left behind
        parent = target.parent
        try:
            if parent != self.root.resolve() and not any(parent.iterdir()):
                parent.rmdir()
        except OSError:
            logger.debug("Could not remove folder %s", parent)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def size(self, path: str) -> int:
        try:
            return self._resolve(path).stat().st_size
        except OSError as e:
            raise UpstreamUnavailable(f"Could not stat {path}") from e

    def iter_range(self, path: str, start: int, end: int) -> Iterator[bytes]:
        target = self._resolve(path)
        try:
            f = target.open("rb")
        except OSError as e:
            raise UpstreamUnavailable(f"Could not read {path}") from e
        try:
            f.seek(start)
        except OSError as e:
            f.close()
            raise UpstreamUnavailable(f"Could not read {path}") from e
        return _read_chunks(f, end - start + 1)


class S3BlobStorage(BlobStorage):
    """S3 (or S3-compatible) backend; one bucket holds every video."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def put(self, path: str, data: BinaryIO, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise UpstreamUnavailable(f"Could not write {path}") from e

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except ClientError as e:
            if _is_not_found(e):
                return
            raise UpstreamUnavailable(f"Could not delete {path}") from e
        except BotoCoreError as e:
            raise UpstreamUnavailable(f"Could not delete {path}") from e

    def _head(self, path: str) -> dict | None:
        try:
            return self.client.head_object(Bucket=self.bucket, Key=path)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise UpstreamUnavailable(f"Could not read {path}") from e
        except BotoCoreError as e:
            raise UpstreamUnavailable(f"Could not read {path}") from e

    def exists(self, path: str) -> bool:
        return self._head(path) is not None

    def size(self, path: str) -> int:
        head = self._head(path)
        if head is None:
            raise UpstreamUnavailable(f"Object missing: {path}")
        return int(head["ContentLength"])

    def iter_range(self, path: str, start: int, end: int) -> Iterator[bytes]:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=path, Range=f"bytes={start}-{end}")
        except (ClientError, BotoCoreError) as e:
            raise UpstreamUnavailable(f"Could not read {path}") from e
        return obj["Body"].iter_chunks(CHUNK_SIZE)


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    return code in ("404", "NoSuchKey", "NotFound")


def video_storage_dir(settings: Settings) -> Path:
    if settings.video_storage_dir:
        return Path(settings.video_storage_dir)
    return Path(__file__).resolve().parent.parent.parent / "uploads" / "videos"


def build_storage(settings: Settings) -> BlobStorage:
    if settings.storage_backend == "s3":
        session = boto3.session.Session(
            region_name=settings.s3_region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )
        client = session.client("s3", endpoint_url=settings.s3_endpoint_url or None)
        return S3BlobStorage(client, settings.s3_bucket)
    if settings.storage_backend != "local":
        raise ValueError(f"Unknown storage_backend: {settings.storage_backend}")
    return LocalBlobStorage(video_storage_dir(settings))


@lru_cache
def get_storage() -> BlobStorage:
    """FastAPI dependency; overridden in tests."""
    return build_storage(get_settings())
