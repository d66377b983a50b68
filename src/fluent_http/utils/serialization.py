"""
JSON serialization for request bodies and `_json` responses.

Encoding accepts plain JSON values, pydantic models and dataclasses.
Decoding returns plain JSON or validates into any type pydantic understands
(models, dataclasses, TypedDicts, List[Model], ...).
Form and multipart bodies are encoded here too.
"""

import dataclasses
import json
from functools import lru_cache
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlencode

from pydantic import BaseModel, TypeAdapter, ValidationError
from urllib3 import encode_multipart_formdata

from ..core.exceptions import SerializationError


@lru_cache(maxsize=128)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


class JsonSerializer:
    """
    Encode values to JSON bodies and decode bodies into requested shapes.

    Example:
        >>> serializer = JsonSerializer()
        >>> body = serializer.encode({"name": "alice"})
        >>> serializer.decode(b'{"id": 1}')
        {'id': 1}
        >>> serializer.decode(b'{"id": 1, "name": "A"}', User)
        User(id=1, name='A')
    """

    content_type = "application/json"

    def encode(self, value: Any) -> bytes:
        """
        Serialize value to UTF-8 JSON.

        Raises:
            SerializationError: If the value is not JSON serializable
        """
        try:
            return json.dumps(_to_jsonable(value), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize request body: {e}", cause=e) from e

    def decode(self, content: bytes, model: Optional[Any] = None) -> Any:
        """
        Deserialize a JSON body.

        Args:
            content: Raw body
            model: Target type; None returns plain decoded JSON

        Raises:
            SerializationError: Invalid JSON or shape mismatch
        """
        try:
            if model is None:
                return json.loads(content)
            return _adapter(model).validate_json(content)
        except ValidationError as e:
            raise SerializationError(f"Failed to deserialize response: {e}", cause=e) from e
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to deserialize response: {e}", cause=e) from e

    def encode_body(self, value: Any) -> Tuple[bytes, str]:
        """Encoded body plus the Content-Type to send with it."""
        return self.encode(value), self.content_type


def encode_form(form: Any) -> Tuple[bytes, str]:
    """
    URL-encode a mapping, pydantic model or dataclass as a form body.

    Raises:
        SerializationError: If the value cannot be form-encoded
    """
    data = _to_jsonable(form)
    if not isinstance(data, Mapping):
        raise SerializationError(f"Cannot form-encode {type(form).__name__}")
    try:
        return urlencode(data, doseq=True).encode("utf-8"), "application/x-www-form-urlencoded"
    except TypeError as e:
        raise SerializationError(f"Failed to form-encode body: {e}", cause=e) from e


def encode_multipart(fields: Any) -> Tuple[bytes, str]:
    """
    Encode fields as multipart/form-data (urllib3 encoder, same as requests).

    Values are str/bytes, or a tuple ``(filename, data)`` /
    ``(filename, data, content_type)`` for file parts. None values are skipped.

    Example:
        >>> body, content_type = encode_multipart({
        ...     "title": "report",
        ...     "file": ("report.csv", b"a,b\\n1,2", "text/csv"),
        ... })

    Raises:
        SerializationError: If the fields cannot be encoded
    """
    data = _to_jsonable(fields)
    if isinstance(data, Mapping):
        data = list(data.items())
    if not isinstance(data, (list, tuple)):
        raise SerializationError(f"Cannot multipart-encode {type(fields).__name__}")

    parts = []
    try:
        for name, value in data:
            # Список = повторяющееся поле, как в encode_form
            for item in (value if isinstance(value, list) else [value]):
                if item is None:
                    continue
                if isinstance(item, (int, float, bool)):
                    item = json.dumps(item)
                parts.append((name, item))
        body, content_type = encode_multipart_formdata(parts)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to multipart-encode body: {e}", cause=e) from e
    return body, content_type
