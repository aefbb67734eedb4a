from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class OcrResult:
    """Text recognized by the OCR engine."""

    text: str
    page_count: int = 1


@dataclass(frozen=True)
class OcrProgress:
    """Diagnostic progress event; ``progress`` runs from 0.0 to 1.0."""

    status: str
    progress: float


ProgressCallback = Callable[[OcrProgress], None]
