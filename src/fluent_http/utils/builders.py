"""
Fluent builders for headers, query strings and URLs.

Pure data transformation, no I/O. Every setter returns the builder, build()
returns an immutable result.

Example:
    >>> hdrs = headers().json_headers().bearer_auth("token").build()
    >>> qs = query().param("page", 1).optional_param("filter", None).build()
    >>> endpoint = url("https://api.example.com").path("users").path("a/b").build()
    >>> endpoint
    'https://api.example.com/users/a%2Fb'
"""

import base64
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from requests.structures import CaseInsensitiveDict

from ..core.exceptions import ConfigurationError
from ..core.utils import _stringify, validate_header_name, validate_header_value, validate_url

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HEADERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HeaderBuilder:
    """
    Накопитель заголовков.

    Повторное имя (без учёта регистра) перезаписывает значение и регистр имени.
    Невалидное имя или значение сразу поднимает ConfigurationError.
    """

    def __init__(self):
        self._headers = CaseInsensitiveDict()

    def header(self, name: str, value: Any) -> 'HeaderBuilder':
        validate_header_name(name)
        self._headers[name] = validate_header_value(name, value)
        return self

    def headers(self, values: Mapping[str, Any]) -> 'HeaderBuilder':
        for name, value in values.items():
            self.header(name, value)
        return self

    def bearer_auth(self, token: str) -> 'HeaderBuilder':
        """Authorization: Bearer {token}. Пустой токен - ConfigurationError."""
        if not token:
            raise ConfigurationError("Bearer token must not be empty")
        return self.header("Authorization", f"Bearer {token}")

    def basic_auth(self, username: str, password: Optional[str] = None) -> 'HeaderBuilder':
        """
        Authorization: Basic ...

        Без password username считается уже закодированным токеном.
        """
        if password is None:
            token = username
        else:
            token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        if not token:
            raise ConfigurationError("Basic auth credentials must not be empty")
        return self.header("Authorization", f"Basic {token}")

    def api_key(self, header_name: str, key: str) -> 'HeaderBuilder':
        return self.header(header_name, key)

    def user_agent(self, user_agent: str) -> 'HeaderBuilder':
        return self.header("User-Agent", user_agent)

    def json_headers(self) -> 'HeaderBuilder':
        """Content-Type и Accept = application/json."""
        return (
            self.header("Content-Type", "application/json")
            .header("Accept", "application/json")
        )

    def build(self) -> Mapping[str, str]:
        """Read-only case-insensitive mapping."""
        return MappingProxyType(CaseInsensitiveDict(self._headers))

    def __len__(self) -> int:
        return len(self._headers)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# QUERY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class QueryBuilder:
    """
    Накопитель query параметров в порядке добавления.

    Повторные ключи допустимы (tag=a&tag=b). Значения кодируются только в build().
    """

    def __init__(self):
        self._pairs: List[Tuple[str, str]] = []

    def param(self, key: str, value: Any) -> 'QueryBuilder':
        self._pairs.append((str(key), _stringify(value)))
        return self

    def params(self, values: Any) -> 'QueryBuilder':
        """Mapping или iterable пар (key, value)."""
        items = values.items() if isinstance(values, Mapping) else values
        for key, value in items:
            self.param(key, value)
        return self

    def optional_param(self, key: str, value: Optional[Any]) -> 'QueryBuilder':
        """Добавить параметр, только если value не None."""
        if value is not None:
            self.param(key, value)
        return self

    def build(self) -> str:
        """
        Percent-encoded query string без ведущего '?'.

        Examples:
            >>> QueryBuilder().param("q", "a b&c").param("page", 2).build()
            'q=a%20b%26c&page=2'
        """
        return urlencode(self._pairs, quote_via=quote)

    def build_pairs(self) -> Tuple[Tuple[str, str], ...]:
        """Сырые (не закодированные) пары."""
        return tuple(self._pairs)

    def build_query_string(self) -> str:
        """'?...' или пустая строка, если параметров нет."""
        encoded = self.build()
        return f"?{encoded}" if encoded else ""

    def __len__(self) -> int:
        return len(self._pairs)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# URL
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class UrlBuilder:
    """
    Собирает URL из базы, сегментов пути и query параметров.

    Каждый сегмент кодируется отдельно: '/' внутри сегмента становится %2F
    и не разбивает его на два.
    """

    def __init__(self, base: str):
        self._base = base.rstrip("/")
        self._segments: List[str] = []
        self._query = QueryBuilder()

    def path(self, segment: Any) -> 'UrlBuilder':
        self._segments.append(quote(_stringify(segment), safe=""))
        return self

    def paths(self, segments: Iterable[Any]) -> 'UrlBuilder':
        for segment in segments:
            self.path(segment)
        return self

    def query(self, key: str, value: Any) -> 'UrlBuilder':
        self._query.param(key, value)
        return self

    def queries(self, pairs: Any) -> 'UrlBuilder':
        self._query.params(pairs)
        return self

    def build(self) -> str:
        """
        Raises:
            ConfigurationError: Итоговая строка не является валидным URL
        """
        result = "/".join([self._base, *self._segments])
        result += self._query.build_query_string()
        return validate_url(result)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SHORTCUTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def headers() -> HeaderBuilder:
    return HeaderBuilder()


def query() -> QueryBuilder:
    return QueryBuilder()


def url(base: str) -> UrlBuilder:
    return UrlBuilder(base)
