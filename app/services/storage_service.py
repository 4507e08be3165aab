# app/services/storage_service.py
"""
Blob storage for uploaded audio

Firebase Storage when FIREBASE_STORAGE_BUCKET is configured, otherwise a local
directory served under /static. Every blob call runs in the threadpool; bucket
calls carry a per-call timeout and retry transient errors with backoff.
"""

import os
import posixpath
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from firebase_admin import storage as firebase_storage
from google.api_core import exceptions as google_exceptions
from google.api_core.retry import Retry, if_transient_error
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.utils.errors import StorageError
from app.utils.logger import logger

MUSIC_FOLDER = "music"
VOICE_FOLDER = "voice-messages"

MUSIC_EXTENSIONS = (".mp3", ".wav", ".ogg", ".aac", ".m4a")
VOICE_EXTENSIONS = MUSIC_EXTENSIONS + (".webm",)
MUSIC_MIME_TYPES = (
    "audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/ogg",
    "audio/aac", "audio/m4a", "audio/x-m4a", "audio/mp4",
)
VOICE_MIME_TYPES = MUSIC_MIME_TYPES + ("audio/webm", "audio/webm;codecs=opus")

CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".aac": "audio/aac",
    ".m4a": "audio/mp4",
    ".webm": "audio/webm",
}

CACHE_CONTROL = "public, max-age=31536000"


def safe_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", name or "audio")


def is_allowed(filename: str, content_type: Optional[str], extensions, mime_types) -> bool:
    return (content_type or "").lower() in mime_types or (filename or "").lower().endswith(extensions)


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), "audio/mpeg")


def normalize_key(storage_path: Optional[str]) -> Optional[str]:
    """Canonical blob key, or None if the path is empty or climbs out of the storage root."""
    if not storage_path:
        return None
    key = posixpath.normpath(storage_path.replace("\\", "/").lstrip("/"))
    if key in (".", "") or key == ".." or key.startswith("../"):
        return None
    return key


@dataclass
class BlobInfo:
    key: str
    size: int
    updated: datetime


class BlobStore(Protocol):
    """The blob operations the upload routes need."""

    def write(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        ...

    def read(self, key: str) -> bytes:
        ...

    def stat(self, key: str) -> Optional[BlobInfo]:
        ...

    def remove(self, key: str) -> bool:
        ...

    def list(self, prefix: str) -> List[BlobInfo]:
        ...

    def public_url(self, key: str) -> str:
        ...


@dataclass
class LocalBlobStore:
    """Files under a local directory, served by the /static mount."""

    root: str

    def path_for(self, key: str) -> Optional[str]:
        full = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([full, self.root]) != self.root:
            return None
        return full

    def write(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        full = self.path_for(key)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(data)

    def read(self, key: str) -> bytes:
        with open(self.path_for(key), "rb") as f:
            return f.read()

    def stat(self, key: str) -> Optional[BlobInfo]:
        full = self.path_for(key)
        if not full or not os.path.isfile(full):
            return None
        st = os.stat(full)
        return BlobInfo(key, st.st_size, datetime.fromtimestamp(st.st_mtime, tz=timezone.utc))

    def remove(self, key: str) -> bool:
        full = self.path_for(key)
        if not full or not os.path.isfile(full):
            return False
        os.remove(full)
        return True

    def list(self, prefix: str) -> List[BlobInfo]:
        folder, _, name_prefix = prefix.rpartition("/")
        directory = self.path_for(folder)
        if not directory or not os.path.isdir(directory):
            return []
        blobs = []
        for name in os.listdir(directory):
            if name.startswith(name_prefix):
                info = self.stat(f"{folder}/{name}")
                if info:
                    blobs.append(info)
        return blobs

    def public_url(self, key: str) -> str:
        return f"{settings.public_base_url.rstrip('/')}/static/{key}"


@dataclass
class FirebaseBlobStore:
    """Blobs in a Firebase Storage (GCS) bucket."""

    bucket: Any
    timeout: float
    retry: Retry

    def write(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        blob = self.bucket.blob(key)
        blob.cache_control = CACHE_CONTROL
        blob.metadata = metadata
        blob.upload_from_string(data, content_type=content_type, timeout=self.timeout, retry=self.retry)

    def read(self, key: str) -> bytes:
        return self.bucket.blob(key).download_as_bytes(timeout=self.timeout, retry=self.retry)

    def stat(self, key: str) -> Optional[BlobInfo]:
        blob = self.bucket.get_blob(key, timeout=self.timeout, retry=self.retry)
        if blob is None:
            return None
        return BlobInfo(key, int(blob.size or 0), blob.updated or datetime.now(timezone.utc))

    def remove(self, key: str) -> bool:
        try:
            self.bucket.blob(key).delete(timeout=self.timeout, retry=self.retry)
        except google_exceptions.NotFound:
            return False
        return True

    def list(self, prefix: str) -> List[BlobInfo]:
        return [
            BlobInfo(blob.name, int(blob.size or 0), blob.updated or datetime.now(timezone.utc))
            for blob in self.bucket.list_blobs(prefix=prefix, timeout=self.timeout, retry=self.retry)
        ]

    def public_url(self, key: str) -> str:
        # bucket objects stay private; clients stream them through the audio proxy
        return f"{settings.public_base_url.rstrip('/')}/api/audio-proxy/{key}"


def storage_retry() -> Retry:
    """Exponential backoff on 429/500/503 and connection errors."""
    return Retry(
        predicate=if_transient_error,
        initial=1.0,
        multiplier=2.0,
        maximum=8.0,
        deadline=settings.storage_retry_deadline_seconds,
    )


def _firebase_store() -> FirebaseBlobStore:
    from app.utils.auth import get_firebase_app

    app = get_firebase_app()
    if app is None:
        raise StorageError("Firebase Storage is configured but Firebase Admin is not initialised")
    bucket = firebase_storage.bucket(settings.firebase_storage_bucket, app=app)
    logger.info(f"🪣 Using Firebase Storage bucket {bucket.name}")
    return FirebaseBlobStore(bucket=bucket, timeout=settings.storage_timeout_seconds, retry=storage_retry())


class StorageService:
    def __init__(self, root: Optional[str] = None, store: Optional[BlobStore] = None):
        self._root = root
        self._store = store

    @property
    def root(self) -> str:
        return os.path.abspath(self._root or settings.storage_dir)

    @property
    def store(self) -> BlobStore:
        if self._store is None:
            if settings.firebase_storage_bucket:
                self._store = _firebase_store()
            else:
                self._store = LocalBlobStore(self.root)
        return self._store

    @property
    def is_local(self) -> bool:
        return isinstance(self.store, LocalBlobStore)

    def ensure_dirs(self):
        for folder in (MUSIC_FOLDER, VOICE_FOLDER):
            os.makedirs(os.path.join(self.root, folder), exist_ok=True)

    def resolve(self, storage_path: str) -> Optional[str]:
        """Filesystem path for a key on the local store; None for bad keys or a bucket store."""
        key = normalize_key(storage_path)
        if key is None or not self.is_local:
            return None
        return self.store.path_for(key)

    async def _call(self, operation: str, fn, *args):
        try:
            return await run_in_threadpool(fn, *args)
        except (OSError, google_exceptions.GoogleAPIError) as e:
            logger.error(f"❌ Storage {operation} failed: {e}")
            raise StorageError(f"Storage {operation} failed") from e

    async def save(self, folder: str, user_id: str, original_name: str, data: bytes,
                   content_type: Optional[str] = None) -> Dict:
        unique_name = f"{user_id}-{int(time.time() * 1000)}-{safe_name(original_name)}"
        storage_path = f"{folder}/{unique_name}"
        metadata = {"uploadedBy": user_id, "originalName": original_name or ""}
        await self._call(
            "upload", self.store.write, storage_path, data, content_type or content_type_for(unique_name), metadata
        )
        logger.info(f"💾 Stored {storage_path} ({len(data)} bytes)")
        return {
            "filename": unique_name,
            "storagePath": storage_path,
            "url": self.store.public_url(storage_path),
            "size": len(data),
        }

    async def read(self, storage_path: str) -> bytes:
        key = normalize_key(storage_path)
        if key is None:
            raise StorageError("Invalid storage path")
        return await self._call("download", self.store.read, key)

    async def exists(self, storage_path: str) -> bool:
        key = normalize_key(storage_path)
        if key is None:
            return False
        return await self._call("lookup", self.store.stat, key) is not None

    async def delete(self, storage_path: str) -> bool:
        key = normalize_key(storage_path)
        if key is None:
            return False
        deleted = await self._call("delete", self.store.remove, key)
        if deleted:
            logger.info(f"🗑️ Deleted {key}")
        return deleted

    def _describe(self, info: BlobInfo, user_id: Optional[str] = None) -> Dict:
        filename = posixpath.basename(info.key)
        original = filename
        if user_id and original.startswith(f"{user_id}-"):
            original = re.sub(r"^\d+-", "", original[len(user_id) + 1:])
        return {
            "id": f"uploaded-{filename}",
            "filename": filename,
            "originalName": original,
            "size": info.size,
            "mimetype": content_type_for(filename),
            "url": self.store.public_url(info.key),
            "storagePath": info.key,
            "uploadedAt": info.updated.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }

    async def describe(self, storage_path: str, user_id: Optional[str] = None) -> Optional[Dict]:
        key = normalize_key(storage_path)
        if key is None:
            return None
        info = await self._call("lookup", self.store.stat, key)
        return self._describe(info, user_id) if info else None

    async def list_user_files(self, folder: str, user_id: str) -> List[Dict]:
        blobs = await self._call("listing", self.store.list, f"{folder}/{user_id}-")
        files = [self._describe(info, user_id) for info in blobs]
        files.sort(key=lambda f: f["uploadedAt"], reverse=True)
        return files

    @staticmethod
    def content_type(filename: str) -> str:
        return content_type_for(filename)


storage_service = StorageService()
