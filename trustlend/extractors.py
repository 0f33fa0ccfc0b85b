"""
TrustLend Claim Field Extractors

Each credential type owns a strategy for reading its value out of a
verified claim, so the ledger never hard-codes field names.
"""

from abc import ABC, abstractmethod

from .claims import ClaimInfo
from .context import extract_field


DEFAULT_CREDIT_SCORE_MARKER = '"CreditScore":"'


def marker_for_label(label: str) -> str:
    """Context marker for a "label":"value" pair."""
    return f'"{label}":"'


class FieldExtractor(ABC):
    """Reads one field from claim metadata. Returns "" when absent."""

    @abstractmethod
    def extract(self, claim_info: ClaimInfo) -> str:
        pass

    def describe(self) -> str:
        return type(self).__name__


class MarkerFieldExtractor(FieldExtractor):
    """Extracts the value that follows a marker in the claim context."""

    def __init__(self, marker: str):
        if not marker:
            raise ValueError("marker must not be empty")
        self.marker = marker

    @classmethod
    def for_label(cls, label: str) -> 'MarkerFieldExtractor':
        return cls(marker_for_label(label))

    def extract(self, claim_info: ClaimInfo) -> str:
        return extract_field(claim_info.context, self.marker)

    def describe(self) -> str:
        return f"marker:{self.marker}"


class ParametersFieldExtractor(FieldExtractor):
    """Like MarkerFieldExtractor, but reads the claim parameters string."""

    def __init__(self, marker: str):
        if not marker:
            raise ValueError("marker must not be empty")
        self.marker = marker

    def extract(self, claim_info: ClaimInfo) -> str:
        return extract_field(claim_info.parameters, self.marker)

    def describe(self) -> str:
        return f"parameters:{self.marker}"
