"""
Система конфигурации fluent-http.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
ClientConfigBuilder собирает конфиг цепочкой setter'ов и валидирует
значения локально и синхронно, без сетевых операций.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, FrozenSet, Mapping, Optional

import httpx
from requests.structures import CaseInsensitiveDict

from .exceptions import ConfigurationError
from .utils import (
    Duration,
    to_seconds,
    validate_header_name,
    validate_header_value,
    validate_url,
)

if TYPE_CHECKING:
    from .logging import LoggingConfig

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов dispatch фазы.

    Args:
        connect: Таймаут подключения (сек), None = дефолт транспорта
        total: Общий таймаут запроса (сек), None = дефолт транспорта

    Examples:
        >>> TimeoutConfig(connect=5, total=30)
        >>> TimeoutConfig(connect=None, total=None)  # Без явных таймаутов
    """
    connect: Optional[float] = 10.0
    total: Optional[float] = 30.0

    def __post_init__(self):
        """Валидация и нормализация (0 -> None)."""
        object.__setattr__(self, 'connect', to_seconds(self.connect, "connect timeout"))
        object.__setattr__(self, 'total', to_seconds(self.total, "timeout"))

    def as_requests(self):
        """Вернуть как (connect, read) для requests или None."""
        if self.connect is None and self.total is None:
            return None
        return (self.connect, self.total)

    def as_httpx(self):
        """
        Вернуть как httpx.Timeout.

        Без обоих значений - httpx.USE_CLIENT_DEFAULT (таймаут самого
        httpx клиента), а не httpx.Timeout(None), который снимает все лимиты.
        """
        if self.connect is None and self.total is None:
            return httpx.USE_CLIENT_DEFAULT
        return httpx.Timeout(self.total, connect=self.connect)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REDIRECT POLICY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RedirectPolicy:
    """
    Политика редиректов.

    Args:
        follow: Следовать ли редиректам
        max_redirects: Максимум переходов (игнорируется при follow=False)
    """
    follow: bool = True
    max_redirects: int = 10

    def __post_init__(self):
        """Валидация."""
        if self.max_redirects < 0:
            raise ConfigurationError("max_redirects must be non-negative")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии для RetryMiddleware.

    Args:
        max_attempts: Максимум попыток (включая первую)
        backoff_base: Базовая задержка (сек)
        backoff_factor: Множитель для exponential backoff
        backoff_max: Максимальная задержка (сек)
        backoff_jitter: Добавлять случайность (против thundering herd)
        idempotent_methods: Какие HTTP методы можно ретраить
        retryable_status_codes: Какие статус коды ретраить
        respect_retry_after: Учитывать Retry-After header
        retry_after_max: Максимум ждать из Retry-After (сек)

    Examples:
        >>> RetryConfig(max_attempts=3, backoff_base=0.5)
        >>> RetryConfig(max_attempts=5, backoff_max=120)
    """
    max_attempts: int = 3
    backoff_base: float = 0.5
    backoff_factor: float = 2.0
    backoff_max: float = 60.0
    backoff_jitter: bool = True

    idempotent_methods: FrozenSet[str] = field(
        default_factory=lambda: frozenset({'GET', 'HEAD', 'PUT', 'DELETE', 'OPTIONS', 'TRACE'})
    )

    retryable_status_codes: FrozenSet[int] = field(
        default_factory=lambda: frozenset({408, 429, 500, 502, 503, 504})
    )

    respect_retry_after: bool = True
    retry_after_max: float = 300  # 5 минут

    def __post_init__(self):
        """Валидация."""
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")
        if self.backoff_base < 0:
            raise ConfigurationError("backoff_base must be non-negative")
        if self.backoff_factor < 1:
            raise ConfigurationError("backoff_factor must be >= 1")
        if self.backoff_max < 0:
            raise ConfigurationError("backoff_max must be non-negative")
        if self.retry_after_max < 0:
            raise ConfigurationError("retry_after_max must be non-negative")

        object.__setattr__(
            self, 'idempotent_methods', frozenset(m.upper() for m in self.idempotent_methods)
        )
        object.__setattr__(self, 'retryable_status_codes', frozenset(self.retryable_status_codes))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze_headers(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """
    Validate headers and return a read-only case-insensitive mapping.

    Later names overwrite earlier ones case-insensitively.
    """
    frozen = CaseInsensitiveDict()
    for name, value in (headers or {}).items():
        validate_header_name(name)
        frozen[name] = validate_header_value(name, value)
    return MappingProxyType(frozen)

@dataclass(frozen=True)
class ClientConfig:
    """
    Итоговая конфигурация клиента.

    Immutable: клиент держит собственную копию, изменения только
    через ClientConfigBuilder.

    Args:
        base_url: Базовый URL (опционально, абсолютный)
        headers: Дефолтные заголовки (case-insensitive)
        timeout: Таймауты dispatch фазы
        redirect: Политика редиректов
        verify_ssl: Проверять SSL сертификаты
        pool_connections: Количество connection pools для кеширования
        pool_maxsize: Максимум соединений в пуле
        logging: Конфигурация логирования клиента (None = выключено)

    Examples:
        >>> config = ClientConfig(base_url="https://api.example.com")
        >>> config = (
        ...     ClientConfig.builder()
        ...     .set_base_url("https://api.example.com")
        ...     .set_default_header("X-Client", "fluent")
        ...     .build()
        ... )
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(CaseInsensitiveDict()))
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    redirect: RedirectPolicy = field(default_factory=RedirectPolicy)
    verify_ssl: bool = True
    pool_connections: int = 10
    pool_maxsize: int = 10
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Validate base_url, freeze headers."""
        if self.base_url is not None:
            validate_url(self.base_url)
            normalized = self.base_url.rstrip('/')
            if normalized != self.base_url:
                object.__setattr__(self, 'base_url', normalized)

        object.__setattr__(self, 'headers', _freeze_headers(self.headers))

        if self.pool_connections <= 0:
            raise ConfigurationError("pool_connections must be positive")
        if self.pool_maxsize <= 0:
            raise ConfigurationError("pool_maxsize must be positive")

    @classmethod
    def builder(cls) -> 'ClientConfigBuilder':
        """Новый builder с дефолтными значениями."""
        return ClientConfigBuilder()

    def to_builder(self) -> 'ClientConfigBuilder':
        """
        Builder, заполненный значениями этого конфига.

        Example:
            >>> new_config = config.to_builder().set_timeout(60).build()
        """
        return ClientConfigBuilder(self)

class ClientConfigBuilder:
    """
    Fluent builder для ClientConfig.

    Каждый setter возвращает builder. Ошибки валидации поднимаются сразу
    как ConfigurationError; build() возвращает замороженный ClientConfig.

    Example:
        >>> config = (
        ...     ClientConfigBuilder()
        ...     .set_base_url("https://api.example.com")
        ...     .with_json_headers()
        ...     .set_timeout(30)
        ...     .set_connect_timeout(5)
        ...     .set_redirect_policy(follow=True, max_hops=5)
        ...     .build()
        ... )
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        """
        Args:
            config: Конфиг, значения которого берутся за основу
        """
        config = config or ClientConfig()
        self._base_url = config.base_url
        self._headers = CaseInsensitiveDict(config.headers)
        self._connect_timeout = config.timeout.connect
        self._timeout = config.timeout.total
        self._redirect = config.redirect
        self._verify_ssl = config.verify_ssl
        self._pool_connections = config.pool_connections
        self._pool_maxsize = config.pool_maxsize
        self._logging = config.logging

    def set_base_url(self, base_url: str) -> 'ClientConfigBuilder':
        """Базовый URL. Должен быть абсолютным."""
        validate_url(base_url)
        self._base_url = base_url.rstrip('/')
        return self

    def set_default_header(self, name: str, value: str) -> 'ClientConfigBuilder':
        """Дефолтный заголовок. Повторное имя (без учёта регистра) перезаписывает."""
        validate_header_name(name)
        self._headers[name] = validate_header_value(name, value)
        return self

    def set_default_headers(self, headers: Mapping[str, str]) -> 'ClientConfigBuilder':
        """Несколько дефолтных заголовков."""
        for name, value in headers.items():
            self.set_default_header(name, value)
        return self

    def with_json_headers(self) -> 'ClientConfigBuilder':
        """Content-Type и Accept = application/json."""
        return (
            self.set_default_header("Content-Type", "application/json")
            .set_default_header("Accept", "application/json")
        )

    def set_timeout(self, timeout: Optional[Duration]) -> 'ClientConfigBuilder':
        """Общий таймаут (сек или timedelta). 0 = без явного таймаута."""
        self._timeout = to_seconds(timeout, "timeout")
        return self

    def set_connect_timeout(self, timeout: Optional[Duration]) -> 'ClientConfigBuilder':
        """Таймаут подключения (сек или timedelta). 0 = без явного таймаута."""
        self._connect_timeout = to_seconds(timeout, "connect timeout")
        return self

    def set_redirect_policy(self, follow: bool, max_hops: int = 10) -> 'ClientConfigBuilder':
        """Политика редиректов. max_hops игнорируется при follow=False."""
        if not follow:
            max_hops = self._redirect.max_redirects
        self._redirect = RedirectPolicy(follow=follow, max_redirects=max_hops)
        return self

    def set_verify_ssl(self, verify: bool) -> 'ClientConfigBuilder':
        """Проверка SSL сертификатов."""
        self._verify_ssl = verify
        return self

    def set_pool(self, connections: int, maxsize: int) -> 'ClientConfigBuilder':
        """Параметры connection pool транспорта."""
        if connections <= 0 or maxsize <= 0:
            raise ConfigurationError("pool sizes must be positive")
        self._pool_connections = connections
        self._pool_maxsize = maxsize
        return self

    def set_logging(self, logging_config: Optional['LoggingConfig']) -> 'ClientConfigBuilder':
        """Логирование жизненного цикла запросов клиента."""
        self._logging = logging_config
        return self

    def build(self) -> ClientConfig:
        """Провалидировать и заморозить конфигурацию."""
        return ClientConfig(
            base_url=self._base_url,
            headers=dict(self._headers.items()),
            timeout=TimeoutConfig(connect=self._connect_timeout, total=self._timeout),
            redirect=self._redirect,
            verify_ssl=self._verify_ssl,
            pool_connections=self._pool_connections,
            pool_maxsize=self._pool_maxsize,
            logging=self._logging,
        )
