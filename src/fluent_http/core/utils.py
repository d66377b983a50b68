"""
Utility functions for fluent-http.

Includes:
- URL and header validation (raise ConfigurationError)
- Percent-encoding and duration helpers
- Query parameter extraction from models
- URL/header sanitization for safe logging
"""

import dataclasses
import re
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union
from urllib.parse import parse_qs, quote, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel

from .exceptions import ConfigurationError, SerializationError

Duration = Union[int, float, timedelta]

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
# RFC 7230 token characters
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# Control characters except horizontal tab, plus DEL
_HEADER_VALUE_FORBIDDEN_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def validate_url(url: str) -> str:
    """
    Check that ``url`` is a syntactically valid absolute URL.

    Args:
        url: URL to validate

    Returns:
        The URL unchanged

    Raises:
        ConfigurationError: If the URL is empty, relative or malformed

    Examples:
        >>> validate_url("https://api.example.com")
        'https://api.example.com'
        >>> validate_url("invalid-url")
        Traceback (most recent call last):
        ...
        ConfigurationError: Invalid URL 'invalid-url': missing scheme
    """
    if not isinstance(url, str) or not url:
        raise ConfigurationError(f"Invalid URL {url!r}: empty")

    if any(ch.isspace() for ch in url) or _HEADER_VALUE_FORBIDDEN_RE.search(url):
        raise ConfigurationError(f"Invalid URL '{url}': contains whitespace or control characters")

    try:
        parts = urlsplit(url)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid URL '{url}': {e}", cause=e) from e

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        raise ConfigurationError(f"Invalid URL '{url}': missing scheme")

    if not parts.hostname:
        raise ConfigurationError(f"Invalid URL '{url}': missing host")

    return url


def validate_header_name(name: str) -> str:
    """
    Validate an HTTP header name (RFC 7230 token).

    Raises:
        ConfigurationError: If the name is empty or contains illegal characters
    """
    if not isinstance(name, str) or not _HEADER_NAME_RE.match(name):
        raise ConfigurationError(f"Invalid header name: {name!r}")
    return name


def validate_header_value(name: str, value: Any) -> str:
    """
    Validate an HTTP header value and return it as a string.

    Control characters (CR, LF, NUL, ...) are rejected, horizontal tab is allowed.
    Values must be ASCII: httpx rejects anything else, requests would fail mid-send.

    Raises:
        ConfigurationError: If the value contains control or non-ASCII characters
    """
    if value is None:
        raise ConfigurationError(f"Invalid value for header '{name}': None")

    value = str(value)
    if _HEADER_VALUE_FORBIDDEN_RE.search(value):
        raise ConfigurationError(f"Invalid value for header '{name}': contains control characters")

    try:
        value.encode("ascii")
    except UnicodeEncodeError as e:
        raise ConfigurationError(
            f"Invalid value for header '{name}': non-ASCII characters", cause=e
        ) from e
    return value


def to_seconds(value: Optional[Duration], what: str = "duration") -> Optional[float]:
    """
    Convert a duration (seconds or timedelta) to float seconds.

    Zero and None both mean "no explicit value" and return None.

    Raises:
        ConfigurationError: If the duration is negative or not a number
    """
    if value is None:
        return None

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        raise ConfigurationError(f"{what} must be a number of seconds or timedelta, got {value!r}")

    if seconds < 0:
        raise ConfigurationError(f"{what} must be non-negative")

    return seconds or None


def url_encode(value: Any) -> str:
    """
    Percent-encode a value for use in a URL. Nothing is left unescaped.

    Examples:
        >>> url_encode("hello world & more")
        'hello%20world%20%26%20more'
    """
    return quote(_stringify(value), safe="")


def format_duration(duration: Union[timedelta, float]) -> str:
    """
    Format a duration as a short human-readable string.

    Examples:
        >>> format_duration(timedelta(milliseconds=1500))
        '1.5s'
        >>> format_duration(timedelta(milliseconds=500))
        '500ms'
    """
    if isinstance(duration, timedelta):
        total_ms = int(duration.total_seconds() * 1000)
    else:
        total_ms = int(duration * 1000)

    secs, millis = divmod(total_ms, 1000)
    if secs > 0:
        return f"{secs}.{millis // 100}s"
    return f"{millis}ms"


def _stringify(value: Any) -> str:
    """Render a query value the way JSON would (true/false for booleans)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_query_params(params: Any) -> List[Tuple[str, str]]:
    """
    Convert a pydantic model, dataclass or mapping into query pairs.

    Lists repeat the key, None values and nested objects are skipped.

    Raises:
        SerializationError: If the object cannot be converted

    Examples:
        >>> to_query_params({"name": "John", "age": 30, "active": True})
        [('name', 'John'), ('age', '30'), ('active', 'true')]
        >>> to_query_params({"tag": ["a", "b"]})
        [('tag', 'a'), ('tag', 'b')]
    """
    if isinstance(params, BaseModel):
        data = params.model_dump(mode="json")
    elif dataclasses.is_dataclass(params) and not isinstance(params, type):
        data = dataclasses.asdict(params)
    elif isinstance(params, Mapping):
        data = dict(params)
    else:
        raise SerializationError(
            f"Cannot convert {type(params).__name__} to query parameters"
        )

    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        if value is None or isinstance(value, (dict, Mapping)):
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if item is None or isinstance(item, (dict, list, tuple)):
                    continue
                pairs.append((str(key), _stringify(item)))
        else:
            pairs.append((str(key), _stringify(value)))
    return pairs


# Default sensitive parameter names that should be masked in logs
DEFAULT_SENSITIVE_PARAMS = {
    'api_key', 'apikey', 'api-key',
    'token', 'access_token', 'refresh_token',
    'key', 'secret', 'client_secret',
    'password', 'passwd', 'pwd',
    'auth', 'authorization', 'credentials',
    'session', 'session_id', 'sessionid',
}

SENSITIVE_HEADER_NAMES = {
    'authorization',
    'proxy-authorization',
    'api-key',
    'x-api-key',
    'x-auth-token',
    'cookie',
    'set-cookie',
}


def sanitize_url(
    url: str,
    extra_params: Optional[Set[str]] = None,
    mask: str = 'REDACTED'
) -> str:
    """
    Mask sensitive query parameters in URL for safe logging.

    Args:
        url: The URL to sanitize
        extra_params: Additional parameter names to mask (case-insensitive)
        mask: The string to use for masking (default: 'REDACTED')

    Returns:
        Sanitized URL with sensitive parameters masked

    Examples:
        >>> sanitize_url('https://api.example.com/data?api_key=secret123')
        'https://api.example.com/data?api_key=REDACTED'
    """
    if not url:
        return url

    sensitive_params = DEFAULT_SENSITIVE_PARAMS | (
        {p.lower() for p in extra_params} if extra_params else set()
    )

    try:
        parts = urlsplit(url)
    except ValueError:
        return '<unparseable URL>'

    if not parts.query:
        return url

    params = parse_qs(parts.query, keep_blank_values=True)
    sanitized: Dict[str, List[str]] = {}
    for name, values in params.items():
        sanitized[name] = [mask] * len(values) if name.lower() in sensitive_params else values

    return urlunsplit(parts._replace(query=urlencode(sanitized, doseq=True)))


def sanitize_headers(headers: Mapping[str, str], mask: str = 'REDACTED') -> Dict[str, str]:
    """
    Mask sensitive headers for safe logging.

    Examples:
        >>> sanitize_headers({'Authorization': 'Bearer token123'})
        {'Authorization': 'REDACTED'}
    """
    if not headers:
        return {}

    return {
        key: (mask if key.lower() in SENSITIVE_HEADER_NAMES else value)
        for key, value in headers.items()
    }
