# sinmungo/services/storage.py
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from jose import JWTError, jwt

from sinmungo.core.errors import NotFound, StorageError
from sinmungo.core.security import ALGORITHM, SECRET_KEY

log = logging.getLogger("sinmungo.storage")

# Where uploaded attachments live (can be replaced with an object store later)
ATTACHMENT_STORAGE_DIR = os.environ.get("ATTACHMENT_STORAGE_DIR", "./storage/attachments")
ATTACHMENT_BUCKET = "attachments"
# Base path the signed references point at (served by download_file in api/v1/attachments.py)
SIGNED_URL_PREFIX = os.environ.get("SIGNED_URL_PREFIX", "/api/v1/files")


class LocalBlobStore:
    """
    Filesystem blob store keyed by relative path.

    Objects are private; readers get a signed, time-limited reference (a JWT carrying
    the bucket, the path and an exp claim) instead of the path itself.
    """

    def __init__(self, root: str | os.PathLike, bucket: str = ATTACHMENT_BUCKET):
        self.root = Path(root).resolve()
        self.bucket = bucket
        self.root.mkdir(parents=True, exist_ok=True)

    def _full_path(self, key: str) -> Path:
        full = (self.root / key).resolve()
        # keys are relative and must stay under root
        if self.root != full and self.root not in full.parents:
            raise StorageError(f"Invalid storage key: {key!r}")
        return full

    def exists(self, key: str) -> bool:
        return self._full_path(key).is_file()

    def upload(self, key: str, data: bytes) -> None:
        """Store bytes under key. Never overwrites an existing object."""
        path = self._full_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "xb") as out:
                out.write(data)
        except FileExistsError:
            raise StorageError(f"Object already exists: {key}")
        except OSError as exc:
            raise StorageError(f"Upload failed: {exc}") from exc
        log.info("blob stored bucket=%s key=%s bytes=%s", self.bucket, key, len(data))

    def open(self, key: str) -> Path:
        path = self._full_path(key)
        if not path.is_file():
            raise NotFound("파일을 찾을 수 없습니다.")
        return path

    def remove(self, keys: Iterable[str]) -> List[str]:
        """Delete objects; missing ones are skipped. Returns the keys actually removed."""
        removed: List[str] = []
        for key in keys:
            path = self._full_path(key)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Delete failed for {key}: {exc}") from exc
            removed.append(key)
        if removed:
            log.info("blob removed bucket=%s keys=%s", self.bucket, removed)
        return removed

    def create_signed_url(self, key: str, expires_in: int) -> Tuple[str, datetime]:
        """
        Return (url, expires_at) for key, valid for expires_in seconds.
        """
        if not self.exists(key):
            raise NotFound("파일을 찾을 수 없습니다.")
        expires_at = datetime.utcnow() + timedelta(seconds=expires_in)
        token = jwt.encode(
            {"b": self.bucket, "k": key, "exp": expires_at},
            SECRET_KEY,
            algorithm=ALGORITHM,
        )
        return f"{SIGNED_URL_PREFIX}/{token}", expires_at

    def resolve_signed_url(self, token: str) -> str:
        """Validate a signed reference token and return the object key."""
        try:
            claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise NotFound("만료되었거나 잘못된 파일 주소입니다.")
        if claims.get("b") != self.bucket or not claims.get("k"):
            raise NotFound("만료되었거나 잘못된 파일 주소입니다.")
        return str(claims["k"])


_default_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    """FastAPI dependency; tests override it with a store rooted in a tmp dir."""
    global _default_store
    if _default_store is None:
        _default_store = LocalBlobStore(ATTACHMENT_STORAGE_DIR)
    return _default_store
