import hashlib
import hmac
import time
from collections.abc import Callable
from pathlib import Path
from urllib.parse import quote, urlencode

from batchscan.storage.base import BaseBlobStore
from batchscan.storage.exceptions import BlobNotFoundError, BlobStoreError


class LocalBlobStore(BaseBlobStore):
    """Stores blobs as files under a root directory.

    Signed URLs point at ``base_url`` and carry an expiry timestamp plus an
    HMAC-SHA256 signature over ``path`` and expiry, checked by verify_signature.
    """

    FILES_ROOT = Path("/app/files")

    def __init__(
        self,
        files_root: Path | None = None,
        *,
        base_url: str = "http://localhost:8000/files",
        signing_secret: str = "change-me",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._base_url = base_url.rstrip("/")
        self._secret = signing_secret.encode()
        self._clock = clock

    def put(self, path: str, data: bytes, content_type: str) -> None:
        _ = content_type  # not tracked on the local filesystem
        target = self._resolve_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise BlobStoreError(f"Cannot write blob '{path}': {exc}") from exc

    def get(self, path: str) -> bytes:
        target = self._resolve_path(path)
        if not target.exists():
            raise BlobNotFoundError(f"Blob not found: {path}")
        try:
            return target.read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"Cannot read blob '{path}': {exc}") from exc

    def delete(self, path: str) -> None:
        try:
            self._resolve_path(path).unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Cannot delete blob '{path}': {exc}") from exc

    def signed_url(self, path: str, ttl_seconds: int) -> str:
        if not self._resolve_path(path).exists():
            raise BlobNotFoundError(f"Blob not found: {path}")
        expires = int(self._clock()) + ttl_seconds
        query = urlencode({"expires": expires, "signature": self._sign(path, expires)})
        return f"{self._base_url}/{quote(path)}?{query}"

    def verify_signature(self, path: str, expires: int, signature: str) -> bool:
        """Check a signature produced by signed_url and that it has not expired.

        Called by whatever serves ``base_url``; this package only issues URLs.
        """
        if expires < int(self._clock()):
            return False
        return hmac.compare_digest(self._sign(path, expires), signature)

    def _sign(self, path: str, expires: int) -> str:
        message = f"{path}:{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _resolve_path(self, path: str) -> Path:
        root = self._files_root.resolve()
        target = (root / path).resolve()
        if not path or not target.is_relative_to(root) or target == root:
            raise BlobStoreError(f"Invalid blob path '{path}'")
        return target
