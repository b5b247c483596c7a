"""Shared utilities for storage backends."""

import inspect
import io
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any, Final, Optional, Protocol, Union

import anyio.to_thread
from typing_extensions import TypeAlias

from cosistore.exceptions import ContentLengthMismatchError, InvalidKeyError

__all__ = (
    "ByteSink",
    "ByteSource",
    "KEY_DELIMITER",
    "UploadStream",
    "check_upload_arguments",
    "prepare_upload_body",
    "validate_key",
    "write_to_sink",
)


class _SyncReader(Protocol):
    def read(self, size: int = ..., /) -> bytes: ...


class _SyncWriter(Protocol):
    def write(self, data: bytes, /) -> Any: ...


BytesLike: TypeAlias = Union[bytes, bytearray, memoryview]
ByteSource: TypeAlias = Union[BytesLike, _SyncReader, AsyncIterable[bytes], Iterable[bytes]]
ByteSink: TypeAlias = _SyncWriter

_IN_MEMORY_STREAMS = (io.BytesIO,)

KEY_DELIMITER: Final[str] = "/"
_RESERVED_SEGMENTS: Final[frozenset[str]] = frozenset(("", ".", ".."))


def validate_key(key: Any) -> str:
    """Reject keys the object store client would rewrite or refuse.

    The client normalizes keys into ``/``-separated paths, so a key with an empty
    segment, a ``.`` or ``..`` segment, or a leading or trailing ``/`` would
    either fail inside the client or silently alias another object.

    Raises:
        InvalidKeyError: If ``key`` is not a non-empty string or does not survive
            path normalization unchanged.
    """
    if not isinstance(key, str) or not key:
        msg = f"Object key must be a non-empty string, got {key!r}"
        raise InvalidKeyError(msg)
    if key.startswith(KEY_DELIMITER) or key.endswith(KEY_DELIMITER):
        msg = f"Object key must not start or end with {KEY_DELIMITER!r}, got {key!r}"
        raise InvalidKeyError(msg)
    for segment in key.split(KEY_DELIMITER):
        if segment in _RESERVED_SEGMENTS:
            msg = f"Object key must not contain empty, '.' or '..' segments, got {key!r}"
            raise InvalidKeyError(msg)
    return key


def check_upload_arguments(data: Any, size_hint: Optional[int]) -> None:
    """Reject upload arguments that are wrong regardless of the remote service.

    Raises:
        TypeError: If ``data`` is a ``str``.
        ValueError: If ``size_hint`` is negative.
    """
    if isinstance(data, str):
        msg = "Upload data must be bytes, not str"
        raise TypeError(msg)
    if size_hint is not None and size_hint < 0:
        msg = f"size_hint must be non-negative, got {size_hint}"
        raise ValueError(msg)


async def _read_chunks(source: Any, chunk_size: int) -> AsyncIterator[bytes]:
    """Normalize every supported source into an async stream of byte chunks."""
    read = getattr(source, "read", None)
    if read is not None:
        if inspect.iscoroutinefunction(read):
            while chunk := await read(chunk_size):
                yield bytes(chunk)
            return
        in_memory = isinstance(source, _IN_MEMORY_STREAMS)
        while True:
            chunk = read(chunk_size) if in_memory else await anyio.to_thread.run_sync(read, chunk_size)
            if not chunk:
                return
            yield bytes(chunk)
    elif isinstance(source, AsyncIterable):
        async for chunk in source:
            if chunk:
                yield bytes(chunk)
    elif isinstance(source, Iterable):
        for chunk in source:
            if chunk:
                yield bytes(chunk)
    else:
        msg = f"Unsupported upload source of type {type(source).__name__}"
        raise TypeError(msg)


async def _enforce_length(
    chunks: AsyncIterator[bytes], expected: Optional[int], *, key: str, backend: str
) -> AsyncIterator[bytes]:
    received = 0
    async for chunk in chunks:
        received += len(chunk)
        if expected is not None and received > expected:
            raise ContentLengthMismatchError(expected=expected, actual=received, key=key, backend=backend)
        yield chunk
    # Raised before the iterator is exhausted so the upload is never committed.
    if expected is not None and received != expected:
        raise ContentLengthMismatchError(expected=expected, actual=received, key=key, backend=backend)


class UploadStream:
    """Async iterator handed to the object store client for streamed uploads.

    Remembers a length mismatch raised mid-upload so the backend can report it
    even when the client wraps the exception in its own error type.
    """

    __slots__ = ("_chunks", "_first", "error")

    def __init__(self, first: bytes, chunks: AsyncIterator[bytes]) -> None:
        self._first: Optional[bytes] = first
        self._chunks = chunks
        self.error: Optional[ContentLengthMismatchError] = None

    def __aiter__(self) -> "UploadStream":
        return self

    async def __anext__(self) -> bytes:
        if self._first is not None:
            first, self._first = self._first, None
            return first
        try:
            return await self._chunks.__anext__()
        except ContentLengthMismatchError as exc:
            self.error = exc
            raise


async def prepare_upload_body(
    data: ByteSource, size_hint: Optional[int], *, chunk_size: int, key: str, backend: str
) -> Union[bytes, UploadStream]:
    """Turn an upload source into something the object store client accepts.

    Bytes-like input is checked against ``size_hint`` up front and passed through.
    Streams are wrapped so that a length mismatch raises while the upload is still
    in flight. An empty stream collapses to ``b""``.

    Raises:
        ContentLengthMismatchError: If the source length disagrees with ``size_hint``.
        TypeError: If ``data`` is a ``str`` or an unsupported object.
    """
    check_upload_arguments(data, size_hint)
    if isinstance(data, (bytes, bytearray, memoryview)):
        payload = bytes(data)
        if size_hint is not None and len(payload) != size_hint:
            raise ContentLengthMismatchError(expected=size_hint, actual=len(payload), key=key, backend=backend)
        return payload

    chunks = _enforce_length(_read_chunks(data, chunk_size), size_hint, key=key, backend=backend)
    first = await anext(chunks, None)
    if first is None:
        return b""
    return UploadStream(first, chunks)


async def write_to_sink(sink: ByteSink, chunk: bytes) -> None:
    """Write one chunk to a sync or async sink."""
    write = sink.write
    if inspect.iscoroutinefunction(write):
        await write(chunk)
    elif isinstance(sink, _IN_MEMORY_STREAMS):
        write(chunk)
    else:
        await anyio.to_thread.run_sync(write, chunk)
