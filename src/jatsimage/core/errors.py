"""Error hierarchy for jatsimage with sensitive data redaction."""

from __future__ import annotations

import re


class JatsImageError(Exception):
    """Base exception for all jatsimage errors."""

    pass


class ConfigError(JatsImageError):
    """Configuration loading or validation error."""

    pass


class StorageError(JatsImageError):
    """File storage access error."""

    pass


class ManifestError(JatsImageError):
    """Submission file manifest loading or lookup error."""

    pass


_REDACTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # URL credentials
    (re.compile(r"://[^@\s/]+:[^@\s/]+@"), "://<REDACTED_CREDS>@"),
    # Authorization headers
    (re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE), r"\1<REDACTED_TOKEN>"),
    # Signed download links and API tokens in query strings
    (
        re.compile(r"([?&](?:token|access_token|api_key|apiToken|signature)=)[^&\s#]+"),
        r"\1<REDACTED_TOKEN>",
    ),
]


def redact_error(error: Exception) -> JatsImageError:
    """Wrap an exception, redacting sensitive data from its message.

    Args:
        error: The original exception.

    Returns:
        A JatsImageError with redacted message and original preserved.
    """
    message = str(error)
    for pattern, replacement in _REDACTION_PATTERNS:
        message = pattern.sub(replacement, message)

    redacted = JatsImageError(message)
    redacted.__cause__ = error
    return redacted
