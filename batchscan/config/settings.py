from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "batchscan"
    db_username: str = "batchscan"
    db_password: str = "secret"

    poll_interval_seconds: int = 30
    poll_batch_size: int = 5
    claim_lease_seconds: int = 900
    worker_id: str = ""

    pdf_engine: str = "pdfplumber"

    ocr_engine: str = "tesseract"
    ocr_language: str = "eng"
    ocr_dpi: int = 200
    tesseract_cmd: str = ""

    temp_dir: str = ""

    blob_backend: str = "local"
    blob_root: str = "/app/files"
    blob_base_url: str = "http://localhost:8000/files"
    blob_signing_secret: str = "change-me"
    s3_bucket: str = ""
    s3_region: str = ""
    s3_endpoint_url: str = ""
    signed_url_ttl_seconds: int = 3600

    accept_pdf_uploads: bool = True
    persist_image_uploads: bool = True
    queue_image_uploads: bool = False
    max_upload_bytes: int = 50 * 1024 * 1024
