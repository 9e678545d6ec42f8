"""Tests for user-facing error sanitization."""

import pytest

from ops_copilot.llm_client import LLMConnectionError, LLMRateLimit, LLMTimeout
from ops_copilot.security import sanitize_error_message, scrub_details
from ops_copilot.store import PersistenceError


def test_scrub_details() -> None:
    """Test paths and addresses are replaced."""
    text = scrub_details("failed at /srv/app/store.py in <obj at 0x7f3a2b>")

    assert "/srv" not in text
    assert "0x7f" not in text
    assert "[path]" in text
    assert "[address]" in text


@pytest.mark.parametrize(
    "error,expected",
    [
        (LLMTimeout("read timed out"), "took too long"),
        (LLMRateLimit("slow down"), "Too many requests"),
        (LLMConnectionError("refused"), "unreachable"),
        (PersistenceError("disk"), "record store is unavailable"),
        (ValueError("invalid literal"), "format I could process"),
        (RuntimeError("/etc/secrets leaked"), "Something went wrong"),
    ],
)
def test_sanitize_categories(error: Exception, expected: str) -> None:
    """Test each error maps to its category message without echoing details."""
    message = sanitize_error_message(error)

    assert expected in message
    assert str(error) not in message
