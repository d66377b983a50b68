# src/fluent_http/utils/sanitizer.py
"""
Маскирование чувствительных данных в структурированных полях логов.

HTTPClientLogger прогоняет все extra-поля через mask_sensitive_data,
поэтому токены из заголовков Authorization и URL не попадают в логи.
"""

import re
from typing import Any, Dict, Mapping

# Чувствительные ключи (case-insensitive, совпадение по подстроке)
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'secret', 'jwt',
    'api_key', 'apikey', 'api-key', 'private_key',
    'authorization', 'cookie', 'session',
    'credentials', 'client_secret',
}

SENSITIVE_PATTERNS = [
    # Bearer/Basic токены в значениях заголовков
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1***REDACTED***'),
    (re.compile(r'(Basic\s+)([A-Za-z0-9+/]+=*)', re.IGNORECASE), r'\1***REDACTED***'),
    # key=value в query строках
    (re.compile(r'((?:api[_-]?key|token|password)=)([^\s&,;]+)', re.IGNORECASE), r'\1***REDACTED***'),
]


def mask_sensitive_data(data: Any, mask: str = "***REDACTED***") -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Args:
        data: Данные для маскирования
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными полями

    Examples:
        >>> mask_sensitive_data({"Authorization": "Bearer abc", "Accept": "*/*"})
        {'Authorization': '***REDACTED***', 'Accept': '*/*'}

        >>> mask_sensitive_data("https://api.example.com?api_key=secret123&page=1")
        'https://api.example.com?api_key=***REDACTED***&page=1'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        for pattern, replacement in SENSITIVE_PATTERNS:
            data = pattern.sub(replacement, data)
        return data

    if isinstance(data, Mapping):
        return _mask_mapping(data, mask)

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    return data


def _mask_mapping(data: Mapping, mask: str) -> Dict[Any, Any]:
    result = {}
    for key, value in data.items():
        if _is_sensitive_key(str(key).lower()):
            result[key] = mask
        else:
            result[key] = mask_sensitive_data(value, mask)
    return result


def _is_sensitive_key(key: str) -> bool:
    return any(sensitive in key for sensitive in SENSITIVE_KEYS)


def add_sensitive_keys(*keys: str) -> None:
    """
    Добавляет ключи в глобальный набор SENSITIVE_KEYS.

    Examples:
        >>> add_sensitive_keys('x-internal-signature')
    """
    for key in keys:
        SENSITIVE_KEYS.add(key.lower())
