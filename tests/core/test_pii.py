"""
Unit tests for PII detection and redaction.
"""

import hashlib

import pytest

from backend.core.job_pipeline.stages.pii import PiiRedactor, luhn_valid
from backend.models.schema_mapping import PiiConfig


def make_redactor(detectors, method="mask", custom=None, **kwargs) -> PiiRedactor:
    config = PiiConfig.model_validate({
        "enabledDetectors": detectors,
        "redactionMethod": method,
        "customPatterns": custom or [],
    })
    return PiiRedactor(config, **kwargs)


class TestDetectors:
    """Test suite for built-in detectors with mask redaction."""

    @pytest.mark.parametrize(
        "detector,text,expected",
        [
            ("email", "write to jane.doe@example.com today", "write to [REDACTED_EMAIL] today"),
            ("phone", "call 555-123-4567 now", "call [REDACTED_PHONE] now"),
            ("phone", "call (02) 9876 5432 now", "call [REDACTED_PHONE] now"),
            ("ssn", "ssn 123-45-6789.", "ssn [REDACTED_SSN]."),
            ("credit_card", "card 4111 1111 1111 1111 ok", "card [REDACTED_CREDIT_CARD] ok"),
            ("person_name", "ask Dr. Jane Smith please", "ask [REDACTED_PERSON_NAME] please"),
        ],
    )
    def test_detector_masks_match(self, detector, text, expected):
        redacted, count = make_redactor([detector]).redact(text)

        assert redacted == expected
        assert count == 1

    def test_card_number_failing_luhn_is_kept(self):
        text = "ref 1234 5678 9012 3456"

        redacted, count = make_redactor(["credit_card"]).redact(text)

        assert redacted == text
        assert count == 0

    def test_disabled_detector_does_not_match(self):
        redacted, count = make_redactor(["ssn"]).redact("jane@example.com")

        assert redacted == "jane@example.com"
        assert count == 0

    def test_no_detectors_leaves_text_unchanged(self):
        redactor = make_redactor([])

        assert not redactor.enabled
        assert redactor.redact("jane@example.com 555-123-4567") == ("jane@example.com 555-123-4567", 0)


class TestRedactionMethods:
    """Test suite for mask, remove and hash."""

    def test_remove(self):
        redacted, count = make_redactor(["email"], method="remove").redact("a jane@example.com b")

        assert redacted == "a  b"
        assert count == 1

    def test_hash_uses_salt_and_length(self):
        redactor = make_redactor(["email"], method="hash", hash_salt="pepper", hash_length=8)
        expected = hashlib.sha256(b"pepperjane@example.com").hexdigest()[:8]

        redacted, _ = redactor.redact("to jane@example.com")

        assert redacted == f"to {expected}"

    def test_hash_is_deterministic(self):
        redactor = make_redactor(["email"], method="hash")

        first, _ = redactor.redact("jane@example.com")
        second, _ = redactor.redact("jane@example.com")

        assert first == second
        assert len(first) == 16


class TestCustomPatterns:
    """Test suite for user-defined patterns."""

    def test_custom_pattern_uses_its_replacement(self):
        redactor = make_redactor(
            [],
            custom=[{"name": "ticket", "regex": r"TCK-\d+", "replacement": "[TICKET]"}],
        )

        assert redactor.redact("see TCK-991 and TCK-12") == ("see [TICKET] and [TICKET]", 2)

    def test_overlapping_matches_resolved_by_earliest_start(self):
        redactor = make_redactor(
            ["email"],
            custom=[{"name": "domain", "regex": r"example\.com", "replacement": "[DOMAIN]"}],
        )

        redacted, count = redactor.redact("jane@example.com and example.com")

        assert redacted == "[REDACTED_EMAIL] and [DOMAIN]"
        assert count == 2

    def test_invalid_custom_regex_is_rejected(self):
        with pytest.raises(ValueError):
            PiiConfig.model_validate({
                "customPatterns": [{"name": "bad", "regex": "(", "replacement": "x"}]
            })


class TestLuhn:
    """Test suite for the card checksum."""

    def test_known_valid_number(self):
        assert luhn_valid("4111111111111111")

    def test_invalid_checksum(self):
        assert not luhn_valid("4111111111111112")

    def test_too_short(self):
        assert not luhn_valid("42")
