from pathlib import Path

from batchscan.config.settings import Settings
from batchscan.storage.base import BaseBlobStore
from batchscan.storage.local_adapter import LocalBlobStore
from batchscan.storage.s3_adapter import S3BlobStore


class BlobStoreFactory:
    """Creates the blob store backend selected in settings."""

    BACKENDS = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        backend = settings.blob_backend.lower()
        if backend == "local":
            return LocalBlobStore(
                Path(settings.blob_root),
                base_url=settings.blob_base_url,
                signing_secret=settings.blob_signing_secret,
            )
        if backend == "s3":
            return S3BlobStore(
                settings.s3_bucket,
                region=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
            )
        raise ValueError(
            f"Unknown blob backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
