from collections.abc import Iterable
from dataclasses import dataclass, field

from batchscan.metadata.rules import DEFAULT_RULES, MetadataRule

CORE_FIELDS = ("job_number", "formula_id", "product_name")


@dataclass(frozen=True)
class ExtractedMetadata:
    """Fields derived from extracted text. ``extra`` holds non-core rule output."""

    job_number: str | None = None
    formula_id: str | None = None
    product_name: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, str | None]:
        return {
            "job_number": self.job_number,
            "formula_id": self.formula_id,
            "product_name": self.product_name,
        }


class MetadataExtractor:
    """Applies independent extraction rules to text. Pure and deterministic."""

    def __init__(self, rules: Iterable[MetadataRule] | None = None) -> None:
        self._rules = tuple(rules) if rules is not None else DEFAULT_RULES

    def extract(self, text: str | None) -> ExtractedMetadata:
        core: dict[str, str | None] = dict.fromkeys(CORE_FIELDS)
        extra: dict[str, str] = {}
        if not text:
            return ExtractedMetadata()

        for rule in self._rules:
            value = rule.extract(text)
            if rule.field in core:
                if core[rule.field] is None:
                    core[rule.field] = value
            elif value is not None and rule.field not in extra:
                extra[rule.field] = value

        return ExtractedMetadata(
            job_number=core["job_number"],
            formula_id=core["formula_id"],
            product_name=core["product_name"],
            extra=extra,
        )
