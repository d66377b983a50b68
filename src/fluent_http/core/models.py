"""Request/response objects that flow through the middleware pipeline."""

import copy
import json
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterator, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from .exceptions import ResponseError, SerializationError


class PipelineState(str, Enum):
    """Lifecycle of a single request inside the pipeline."""
    CREATED = "created"
    REQUEST_PHASE = "request_phase"
    DISPATCHED = "dispatched"
    RESPONSE_PHASE = "response_phase"
    COMPLETED = "completed"
    ABORTED = "aborted"


def _headers(value: Optional[Mapping[str, str]]) -> CaseInsensitiveDict:
    return value if isinstance(value, CaseInsensitiveDict) else CaseInsensitiveDict(value or {})


@dataclass
class Request:
    """Pending request handed to middlewares.

    Method, URL, headers and body are all mutable. A middleware may rewrite
    the URL (e.g. to point at a mirror) or the method. The body is bytes and
    is never re-serialized after a middleware touched it.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        url: Absolute request URL including the query string
        headers: Case-insensitive header mapping
        body: Encoded body or None
        request_id: Unique identifier for this request
        metadata: Shared storage for middlewares of the same request
        state: Current pipeline state

    Example:
        >>> req = Request('GET', 'https://api.example.com/users')
        >>> req.headers['Accept'] = 'application/json'
        >>> req.metadata['cache_key'] = 'abc123'
    """

    method: str
    url: str
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Optional[bytes] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    metadata: Dict[str, Any] = field(default_factory=dict)
    state: PipelineState = PipelineState.CREATED

    def __post_init__(self):
        self.method = self.method.upper()
        self.headers = _headers(self.headers)

    def copy(self) -> 'Request':
        """Create an independent copy in CREATED state (one per attempt)."""
        return Request(
            method=self.method,
            url=self.url,
            headers=CaseInsensitiveDict(self.headers),
            body=self.body,
            request_id=self.request_id,
            metadata=copy.copy(self.metadata),
        )


@dataclass
class Response:
    """Response received from the transport.

    Status, headers and body are mutable during the response phase; the
    caller gets the object after every middleware has run.

    A streamed response (``stream`` is set) arrives with an empty
    ``content``: middlewares see status and headers only, the body is read
    later through iter_content/aiter_content or read/aread. The stream can be
    consumed once.
    """

    status_code: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    content: bytes = b""
    url: str = ""
    reason: str = ""
    elapsed: timedelta = field(default_factory=timedelta)
    request: Optional[Request] = None
    encoding: Optional[str] = None
    stream: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.headers = _headers(self.headers)

    @property
    def text(self) -> str:
        """Body decoded with the declared charset, utf-8 by default."""
        encoding = self.encoding or _charset(self.headers.get('Content-Type')) or 'utf-8'
        try:
            return self.content.decode(encoding, errors='replace')
        except LookupError:
            return self.content.decode('utf-8', errors='replace')

    @property
    def is_success(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status_code < 300

    @property
    def ok(self) -> bool:
        """True for statuses below 400 (requests semantics)."""
        return self.status_code < 400

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            SerializationError: If the body is not valid JSON
        """
        try:
            return json.loads(self.content)
        except ValueError as e:
            raise SerializationError(f"Failed to decode JSON response: {e}", cause=e) from e

    def raise_for_status(self) -> 'Response':
        """
        Strict mode: raise ResponseError unless the status is 2xx.

        Returns:
            self, to allow chaining
        """
        if not self.is_success:
            raise ResponseError(self.status_code, self.text, self.url)
        return self

    # ==================== Streaming ====================

    @property
    def is_streamed(self) -> bool:
        """True while the body is still on the wire."""
        return self.stream is not None

    def iter_content(self, chunk_size: int = 8192) -> Iterator[bytes]:
        """
        Body in chunks. For a streamed response reads from the network and
        closes the stream at the end.

        Raises:
            RequestError: Transport failure while reading
        """
        if self.stream is None:
            for start in range(0, len(self.content), chunk_size):
                yield self.content[start:start + chunk_size]
            return

        # stream stays on self until fully read, so close() can interrupt it
        stream = self.stream
        try:
            yield from stream.iter_chunks(chunk_size)
        finally:
            self.stream = None
            stream.close()

    async def aiter_content(self, chunk_size: int = 8192) -> AsyncIterator[bytes]:
        """Async variant of iter_content for responses from an async transport."""
        if self.stream is None:
            for start in range(0, len(self.content), chunk_size):
                yield self.content[start:start + chunk_size]
            return

        stream = self.stream
        try:
            async for chunk in stream.aiter_chunks(chunk_size):
                yield chunk
        finally:
            self.stream = None
            await stream.aclose()

    def read(self) -> bytes:
        """Load a streamed body into ``content``."""
        if self.stream is not None:
            self.content = b"".join(self.iter_content())
        return self.content

    async def aread(self) -> bytes:
        if self.stream is not None:
            self.content = b"".join([chunk async for chunk in self.aiter_content()])
        return self.content

    def close(self) -> None:
        """Release the connection of an unread streamed body."""
        if self.stream is not None:
            stream, self.stream = self.stream, None
            stream.close()

    async def aclose(self) -> None:
        if self.stream is not None:
            stream, self.stream = self.stream, None
            await stream.aclose()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.url}>"


def _charset(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    for part in content_type.split(';')[1:]:
        name, _, value = part.strip().partition('=')
        if name.lower() == 'charset' and value:
            return value.strip('"\'')
    return None
