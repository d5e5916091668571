"""
Regex-based PII detection and redaction.

Detectors and custom patterns are all run over the original text first;
overlapping matches are resolved (earliest start wins, then the longest
match) and the surviving spans are replaced in a single pass. Redacting
one match therefore never changes what another detector sees.

Dependencies: re, hashlib
System role: PII handling for the map_redact stage
"""

import hashlib
import re
from dataclasses import dataclass

from backend.models.schema_mapping import PiiConfig, PiiDetector, RedactionMethod

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(
    r"(?<![\w-])(?:\+\d{1,3}[\s.-]?)?(?:\(\d{2,4}\)[\s.-]?|\d{2,4}[\s.-])\d{3,4}[\s.-]?\d{3,4}(?![\w-])"
)
SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
CREDIT_CARD_PATTERN = re.compile(r"\b(?:\d[ -]?){12,18}\d\b")
PERSON_NAME_PATTERN = re.compile(
    r"\b(?:Mr|Mrs|Ms|Miss|Mx|Dr|Prof)\.?\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?"
)

_DETECTOR_PATTERNS: dict[PiiDetector, re.Pattern[str]] = {
    PiiDetector.EMAIL: EMAIL_PATTERN,
    PiiDetector.PHONE: PHONE_PATTERN,
    PiiDetector.SSN: SSN_PATTERN,
    PiiDetector.CREDIT_CARD: CREDIT_CARD_PATTERN,
    PiiDetector.PERSON_NAME: PERSON_NAME_PATTERN,
}


def luhn_valid(number: str) -> bool:
    """Check a digit string against the Luhn checksum."""
    digits = [int(c) for c in number if c.isdigit()]
    if not 13 <= len(digits) <= 19:
        return False
    checksum = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        checksum += digit
    return checksum % 10 == 0


@dataclass(frozen=True)
class PiiMatch:
    """One detected PII span."""

    start: int
    end: int
    kind: str
    replacement: str | None = None


class PiiRedactor:
    """Detect and redact PII in strings according to a PiiConfig."""

    def __init__(self, config: PiiConfig, hash_salt: str = "", hash_length: int = 16) -> None:
        """
        Initialize redactor.

        Args:
            config: Enabled detectors, redaction method and custom patterns
            hash_salt: Salt prepended before hashing with the 'hash' method
            hash_length: Hex characters kept from each digest
        """
        self._method = config.redaction_method
        self._salt = hash_salt
        self._hash_length = hash_length
        self._detectors = [
            (detector.value, _DETECTOR_PATTERNS[detector])
            for detector in dict.fromkeys(config.enabled_detectors)
        ]
        self._custom = [
            (pattern.name, re.compile(pattern.regex), pattern.replacement)
            for pattern in config.custom_patterns
        ]

    @property
    def enabled(self) -> bool:
        return bool(self._detectors or self._custom)

    def find(self, text: str) -> list[PiiMatch]:
        """
        Find non-overlapping PII matches in text, ordered by position.

        Args:
            text: Text to scan

        Returns:
            list[PiiMatch]: Resolved matches
        """
        candidates: list[PiiMatch] = []
        for kind, pattern in self._detectors:
            for m in pattern.finditer(text):
                if kind == PiiDetector.CREDIT_CARD.value and not luhn_valid(m.group()):
                    continue
                candidates.append(PiiMatch(m.start(), m.end(), kind))
        for name, pattern, replacement in self._custom:
            for m in pattern.finditer(text):
                if m.end() > m.start():
                    candidates.append(PiiMatch(m.start(), m.end(), name, replacement))

        candidates.sort(key=lambda c: (c.start, -(c.end - c.start)))
        resolved: list[PiiMatch] = []
        cursor = 0
        for candidate in candidates:
            if candidate.start >= cursor:
                resolved.append(candidate)
                cursor = candidate.end
        return resolved

    def redact(self, text: str) -> tuple[str, int]:
        """
        Redact PII in text.

        Args:
            text: Text to redact

        Returns:
            tuple[str, int]: (redacted text, number of matches replaced)
        """
        if not text or not self.enabled:
            return text, 0
        matches = self.find(text)
        if not matches:
            return text, 0

        parts: list[str] = []
        cursor = 0
        for match in matches:
            parts.append(text[cursor:match.start])
            parts.append(self._replacement_for(match, text[match.start:match.end]))
            cursor = match.end
        parts.append(text[cursor:])
        return "".join(parts), len(matches)

    def _replacement_for(self, match: PiiMatch, value: str) -> str:
        if self._method == RedactionMethod.REMOVE:
            return ""
        if self._method == RedactionMethod.HASH:
            digest = hashlib.sha256((self._salt + value).encode("utf-8")).hexdigest()
            return digest[: self._hash_length]
        if match.replacement is not None:
            return match.replacement
        return f"[REDACTED_{match.kind.upper()}]"
