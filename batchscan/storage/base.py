from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Contract for durable byte storage keyed by opaque path."""

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Store ``data`` at ``path``, replacing any existing object.

        Raises:
            BlobStoreError: if the object cannot be stored.
        """

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Read the object at ``path``.

        Raises:
            BlobNotFoundError: if nothing is stored at ``path``.
            BlobStoreError: on any other storage failure.
        """

    @abstractmethod
    def signed_url(self, path: str, ttl_seconds: int) -> str:
        """Return a URL granting read access to ``path`` for ``ttl_seconds``.

        Raises:
            BlobStoreError: if the URL cannot be produced.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the object at ``path``. Missing objects are not an error.

        Raises:
            BlobStoreError: if the object exists but cannot be removed.
        """
