"""
Input Validators

This module provides the admission checks applied to caller input:
- URL admission: syntax (http/https only) plus a DNS lookup of the hostname
- Short identifier parsing: path tokens must be integer-shaped

Security Considerations:
- Length limits prevent DoS attacks
- Scheme allow-list blocks javascript:, data:, file: and similar URLs
- Resolving the hostname keeps dead links out of storage, at the cost of one
  network round trip per submission
"""

import asyncio
import logging
import re
import socket
from typing import Any, Awaitable, Callable, NewType, Optional
from urllib.parse import urlsplit

from shorturl.core.exceptions import InvalidURLError, MalformedIdentifierError
from shorturl.core.setting import settings

logger = logging.getLogger(__name__)

# A URL string that passed admission validation
ValidUrl = NewType("ValidUrl", str)

Resolver = Callable[[str], Awaitable[Any]]

ALLOWED_SCHEMES = {"http", "https"}

SHORT_ID_PATTERN = re.compile(r"[0-9]+")

# Largest value the signed 64-bit short_id column can hold
MAX_SHORT_ID = 2**63 - 1


def parse_short_id(token: Optional[str]) -> int:
    """
    Parse a caller-supplied short identifier token.

    Only plain decimal digits are accepted (surrounding whitespace is
    stripped). Signs, decimals and trailing garbage such as "12abc" are
    rejected rather than truncated. Digit strings of any length are
    well-formed; those too long for any stored id parse to MAX_SHORT_ID + 1
    so they can never match.

    Args:
        token: The raw path segment

    Returns:
        The identifier as an int

    Raises:
        MalformedIdentifierError: If the token is not integer-shaped
    """
    if not token or not isinstance(token, str):
        raise MalformedIdentifierError(token)

    stripped = token.strip()
    if not SHORT_ID_PATTERN.fullmatch(stripped):
        raise MalformedIdentifierError(token)

    digits = stripped.lstrip("0") or "0"
    if len(digits) > len(str(MAX_SHORT_ID)):
        return MAX_SHORT_ID + 1

    return int(digits)


def extract_hostname(url: Optional[str], max_length: int = 2048) -> str:
    """
    Check URL syntax and return the hostname to resolve.

    Args:
        url: The candidate URL
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        The lowercased hostname

    Raises:
        InvalidURLError: If the URL is not an absolute http(s) URL
    """
    if not url or not isinstance(url, str):
        raise InvalidURLError(url, reason="URL is required")

    if len(url) > max_length:
        raise InvalidURLError(url, reason=f"URL is too long (max {max_length} characters)")

    if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in url):
        raise InvalidURLError(url, reason="URL contains whitespace or control characters")

    try:
        parts = urlsplit(url)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise InvalidURLError(url, reason=f"Unparseable URL ({e})")

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURLError(url, reason="URL must use http or https")

    if not parts.hostname:
        raise InvalidURLError(url, reason="URL must have a hostname")

    return parts.hostname


async def resolve_hostname(hostname: str) -> Any:
    """Forward lookup (A/AAAA) through the event loop's resolver."""
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)


class UrlValidator:
    """
    Admission validator for submitted URLs.

    A URL is admitted when it is an absolute http/https URL and its hostname
    resolves within the configured timeout. The URL itself is returned
    untouched so callers compare exactly what was submitted.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        resolver: Optional[Resolver] = None,
        max_length: Optional[int] = None,
    ):
        """
        Args:
            timeout: Seconds allowed for the DNS lookup (default: settings)
            resolver: Coroutine function taking a hostname; raises on failure
            max_length: Maximum URL length (default: settings)
        """
        self.timeout = timeout if timeout is not None else settings.DNS_TIMEOUT_SECONDS
        self.resolver = resolver or resolve_hostname
        self.max_length = max_length if max_length is not None else settings.MAX_URL_LENGTH

    async def validate(self, candidate: Optional[str]) -> ValidUrl:
        """
        Validate a candidate URL for admission.

        Raises:
            InvalidURLError: If the syntax check fails, the lookup fails,
                or the lookup exceeds the timeout
        """
        hostname = extract_hostname(candidate, max_length=self.max_length)

        try:
            await asyncio.wait_for(self.resolver(hostname), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.info(f"DNS lookup timed out for {hostname} after {self.timeout}s")
            raise InvalidURLError(candidate, reason="Hostname lookup timed out")
        except (OSError, UnicodeError, ValueError) as e:
            logger.info(f"DNS lookup failed for {hostname}: {e}")
            raise InvalidURLError(candidate, reason="Hostname does not resolve")

        return ValidUrl(candidate)
