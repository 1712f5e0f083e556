"""Validation utilities shared by the denial and appeal models."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional


class ValidationUtils:
    """Utility class for data validation and sanitization."""

    NPI_PATTERN = re.compile(r'^\d{10}$')
    APPEAL_NUMBER_PATTERN = re.compile(r'^APL-\d{8}-[A-Z0-9]{6}$')

    @classmethod
    def sanitize_string(cls, value: Any) -> Optional[str]:
        """Trim whitespace; blank strings become None."""
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        return value or None

    @classmethod
    def normalize_code(cls, code: str) -> str:
        """Upper-case a payer or medical code and drop inner whitespace."""
        return re.sub(r'\s+', '', code).upper()

    @classmethod
    def normalize_codes(cls, codes: List[str]) -> List[str]:
        """Normalize a list of codes, dropping empties and duplicates but keeping order."""
        seen = []
        for code in codes:
            if not code or not code.strip():
                continue
            normalized = cls.normalize_code(code)
            if normalized not in seen:
                seen.append(normalized)
        return seen

    @classmethod
    def validate_npi(cls, npi: str) -> bool:
        """Validate National Provider Identifier format."""
        if not npi:
            return False
        return bool(cls.NPI_PATTERN.match(npi))

    @classmethod
    def validate_appeal_number(cls, appeal_number: str) -> bool:
        if not appeal_number:
            return False
        return bool(cls.APPEAL_NUMBER_PATTERN.match(appeal_number))

    @classmethod
    def to_amount(cls, value: Any) -> Decimal:
        """Coerce a money value to a two-place Decimal, rejecting negatives."""
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValueError(f"Invalid amount: {value!r}")
        if not amount.is_finite():
            raise ValueError(f"Invalid amount: {value!r}")
        if amount < 0:
            raise ValueError(f"Amount must be non-negative, got: {value}")
        return amount.quantize(Decimal("0.01"))
