import re
from abc import ABC, abstractmethod


class MetadataRule(ABC):
    """One independent field extraction over document text."""

    field: str

    @abstractmethod
    def extract(self, text: str) -> str | None:
        """Return the field value, or None when the text has no match."""


class RegexRule(MetadataRule):
    """First match of ``pattern`` in document order, taken from ``group``."""

    def __init__(
        self,
        field: str,
        pattern: str,
        *,
        group: int = 1,
        strip: bool = False,
        flags: int = re.IGNORECASE,
    ) -> None:
        self.field = field
        self._pattern = re.compile(pattern, flags)
        self._group = group
        self._strip = strip

    def extract(self, text: str) -> str | None:
        matches = list(self._pattern.finditer(text))
        if not matches:
            return None
        value = matches[0].group(self._group)
        if value is None:
            return None
        if self._strip:
            value = value.strip()
        return value or None

    def __repr__(self) -> str:
        return f"RegexRule({self.field!r}, {self._pattern.pattern!r})"


JOB_NUMBER_RULE = RegexRule("job_number", r"Job\s*#[:\s]*(\d+)")
FORMULA_ID_RULE = RegexRule("formula_id", r"Formula\s*ID[:\s]*(\d+)")
PRODUCT_NAME_RULE = RegexRule(
    "product_name",
    r"Name[:\s]+([A-Za-z0-9%\s]+?)(?:\n|Gallons|Pounds)",
    strip=True,
)

DEFAULT_RULES: tuple[MetadataRule, ...] = (
    JOB_NUMBER_RULE,
    FORMULA_ID_RULE,
    PRODUCT_NAME_RULE,
)
