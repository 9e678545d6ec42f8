"""Helpers that keep internal error details out of user-facing text."""

import re

_PATH_RE = re.compile(r"(?:[A-Za-z]:)?[/\\][^\s'\"]+")
_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]+")


def scrub_details(text: str) -> str:
    """Remove file paths and memory addresses from a string.

    Args:
        text: Raw text, typically an exception message.

    Returns:
        Text with paths replaced by ``[path]`` and addresses by ``[address]``.
    """
    text = _PATH_RE.sub("[path]", text)
    return _ADDRESS_RE.sub("[address]", text)


def sanitize_error_message(error: Exception) -> str:
    """Map an exception to a short, user-friendly category message.

    The exception text itself is never returned; only the category is
    inferred from the exception type name and (scrubbed) message.

    Args:
        error: The exception that occurred.

    Returns:
        A sanitized, user-friendly error message.
    """
    error_type = type(error).__name__
    error_str = scrub_details(str(error)).lower()

    if "Timeout" in error_type or "timed out" in error_str or "timeout" in error_str:
        return "The assistant took too long to respond. Please try again."
    if "RateLimit" in error_type or "rate limit" in error_str:
        return "Too many requests. Please wait a moment and try again."
    if "Connection" in error_type or "connect" in error_str:
        return "The assistant service is unreachable right now."
    if "NotFound" in error_type or "not found" in error_str:
        return "The requested record was not found."
    if "Validation" in error_type or "invalid" in error_str:
        return "The request was not in a format I could process."
    if "Persistence" in error_type or "Store" in error_type:
        return "The record store is unavailable right now."
    return "Something went wrong while processing your request. Please try again."
