"""Shared validation helpers for client settings."""

from urllib.parse import urlparse


def parse_endpoint_url(value: str, *, schemes: frozenset[str]) -> str:
    """Validate an endpoint URL and return it without a trailing slash.

    Raises ValueError for empty values, unsupported schemes, or a missing host.
    """
    stripped = value.strip()
    if not stripped:
        raise ValueError("URL must not be empty")

    parsed = urlparse(stripped)
    if parsed.scheme not in schemes:
        raise ValueError(f"URL scheme must be one of {', '.join(sorted(schemes))}, got {parsed.scheme!r}")
    if not parsed.netloc:
        raise ValueError(f"URL has no host: {stripped!r}")
    return stripped.rstrip("/")
