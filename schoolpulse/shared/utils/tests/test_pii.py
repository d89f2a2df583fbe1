"""Tests for the student privacy helpers."""
import logging

import pytest

from schoolpulse.shared.utils import (
    UNHASHED_ID,
    configure_pii_salt,
    content_key,
    fingerprint_text,
    hash_pii,
    log_safe_id,
)


@pytest.fixture(autouse=True)
def setup_pii_salt():
    """Configure PII salt before each test."""
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


class TestConfigurePiiSalt:

    @pytest.mark.parametrize("salt", ["", "too_short"])
    def test_short_salt_rejected(self, salt):
        with pytest.raises(ValueError):
            configure_pii_salt(salt)

    def test_rejected_salt_keeps_previous(self):
        before = hash_pii("stu_1")

        with pytest.raises(ValueError):
            configure_pii_salt("too_short")

        assert hash_pii("stu_1") == before


class TestHashPii:

    def test_stable_and_salted(self):
        digest = hash_pii("stu_1")

        assert digest == hash_pii("stu_1")
        assert digest != fingerprint_text("stu_1")
        assert len(digest) == 64

    def test_different_salt_different_digest(self):
        before = hash_pii("stu_1")
        configure_pii_salt("another_salt_that_is_at_least_32_characters")

        assert hash_pii("stu_1") != before

    def test_unconfigured_raises(self, monkeypatch):
        monkeypatch.setattr("schoolpulse.shared.utils.pii._salt", None)

        with pytest.raises(RuntimeError):
            hash_pii("stu_1")


class TestLogSafeId:

    def test_matches_hash_pii(self):
        assert log_safe_id("stu_1") == hash_pii("stu_1")

    def test_empty_value(self):
        assert log_safe_id("") == UNHASHED_ID
        assert log_safe_id(None) == UNHASHED_ID

    def test_unconfigured_returns_marker(self, monkeypatch, caplog):
        monkeypatch.setattr("schoolpulse.shared.utils.pii._salt", None)

        with caplog.at_level(logging.CRITICAL):
            assert log_safe_id("stu_1") == UNHASHED_ID

        assert "PII_HASH_UNAVAILABLE" in caplog.text


class TestContentKey:

    def test_case_and_whitespace_insensitive(self):
        assert content_key("  I feel Hopeless ") == content_key("i feel hopeless")

    def test_unsalted(self):
        before = content_key("i feel hopeless")
        configure_pii_salt("another_salt_that_is_at_least_32_characters")

        assert content_key("i feel hopeless") == before
        assert before == fingerprint_text("i feel hopeless")
