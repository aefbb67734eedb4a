from batchscan.extraction.models import MediaKind
from batchscan.processor.exceptions import UnsupportedMediaTypeError

PDF_CONTENT_TYPE = "application/pdf"


def classify_media_type(content_type: str | None) -> MediaKind:
    """Map a MIME type to the pipeline path it takes.

    Raises:
        UnsupportedMediaTypeError: for anything that is not ``image/*`` or a PDF.
    """
    essence = (content_type or "").split(";", 1)[0].strip().lower()
    if essence.startswith("image/") and len(essence) > len("image/"):
        return MediaKind.IMAGE
    if essence == PDF_CONTENT_TYPE:
        return MediaKind.PDF
    raise UnsupportedMediaTypeError(
        f"Unsupported file type '{content_type or 'unknown'}'. "
        "Please upload images (JPG, PNG) or PDF files."
    )
