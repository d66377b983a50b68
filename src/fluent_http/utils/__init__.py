"""Utility modules for fluent-http."""

from .builders import HeaderBuilder, QueryBuilder, UrlBuilder, headers, query, url
from .sanitizer import add_sensitive_keys, mask_sensitive_data
from .serialization import JsonSerializer, encode_form, encode_multipart

__all__ = [
    'HeaderBuilder',
    'QueryBuilder',
    'UrlBuilder',
    'headers',
    'query',
    'url',
    'JsonSerializer',
    'encode_form',
    'encode_multipart',
    'mask_sensitive_data',
    'add_sensitive_keys',
]
