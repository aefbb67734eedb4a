class BlobStoreError(Exception):
    """Raised when blob storage cannot store, read or sign an object."""


class BlobNotFoundError(BlobStoreError):
    """Raised when no object exists at the requested path."""
