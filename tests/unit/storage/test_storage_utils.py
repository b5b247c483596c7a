"""Tests for upload source normalization and sink writing."""

import io
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from cosistore.exceptions import ContentLengthMismatchError, InvalidKeyError
from cosistore.storage._utils import (
    UploadStream,
    check_upload_arguments,
    prepare_upload_body,
    validate_key,
    write_to_sink,
)

pytestmark = pytest.mark.anyio


async def _collect(body: "bytes | UploadStream") -> bytes:
    if isinstance(body, bytes):
        return body
    return b"".join([chunk async for chunk in body])


async def _prepare(data: object, size_hint: "int | None" = None, chunk_size: int = 4) -> "bytes | UploadStream":
    return await prepare_upload_body(data, size_hint, chunk_size=chunk_size, key="k", backend="s3")  # type: ignore[arg-type]


@pytest.mark.parametrize("data", [b"payload", bytearray(b"payload"), memoryview(b"payload")])
async def test_bytes_like_input_passes_through(data: object) -> None:
    body = await _prepare(data, 7)

    assert body == b"payload"
    assert type(body) is bytes


async def test_bytes_length_is_checked_up_front() -> None:
    with pytest.raises(ContentLengthMismatchError, match="more bytes"):
        await _prepare(b"payload", 3)
    with pytest.raises(ContentLengthMismatchError, match="fewer bytes"):
        await _prepare(b"payload", 30)


async def test_stream_is_chunked() -> None:
    body = await _prepare(io.BytesIO(b"abcdefghij"), 10, chunk_size=4)

    assert isinstance(body, UploadStream)
    assert [chunk async for chunk in body] == [b"abcd", b"efgh", b"ij"]


async def test_empty_stream_collapses_to_bytes() -> None:
    assert await _prepare(io.BytesIO(b"")) == b""
    assert await _prepare(iter([])) == b""
    assert await _prepare(io.BytesIO(b""), 0) == b""


async def test_empty_chunks_are_skipped() -> None:
    body = await _prepare(iter([b"", b"ab", b"", b"cd"]), 4)

    assert await _collect(body) == b"abcd"


async def test_async_iterable_source() -> None:
    async def _chunks() -> AsyncIterator[bytes]:
        yield b"one"
        yield b"two"

    assert await _collect(await _prepare(_chunks(), 6)) == b"onetwo"


async def test_real_file_is_read_in_worker_thread(tmp_path: Path) -> None:
    path = tmp_path / "payload.bin"
    path.write_bytes(b"0123456789")

    with path.open("rb") as handle:
        body = await _prepare(handle, 10, chunk_size=3)
        assert await _collect(body) == b"0123456789"


async def test_stream_overflow_is_recorded() -> None:
    body = await _prepare(io.BytesIO(b"abcdefghij"), 6, chunk_size=4)
    assert isinstance(body, UploadStream)

    with pytest.raises(ContentLengthMismatchError) as exc_info:
        await _collect(body)

    assert body.error is exc_info.value
    assert exc_info.value.expected == 6
    assert exc_info.value.actual == 8


async def test_stream_underflow_raises_before_exhaustion() -> None:
    body = await _prepare(io.BytesIO(b"abc"), 5)
    assert isinstance(body, UploadStream)

    assert await body.__anext__() == b"abc"
    with pytest.raises(ContentLengthMismatchError):
        await body.__anext__()
    assert body.error is not None


async def test_text_is_rejected() -> None:
    with pytest.raises(TypeError, match="not str"):
        await _prepare("text")


async def test_unsupported_source_is_rejected() -> None:
    with pytest.raises(TypeError, match="int"):
        await _prepare(42)


async def test_negative_size_hint_is_rejected() -> None:
    with pytest.raises(ValueError, match="size_hint"):
        await _prepare(b"", -1)


async def test_write_to_sync_sinks(tmp_path: Path) -> None:
    buffer = io.BytesIO()
    await write_to_sink(buffer, b"abc")
    assert buffer.getvalue() == b"abc"

    path = tmp_path / "out.bin"
    with path.open("wb") as handle:
        await write_to_sink(handle, b"abc")
        await write_to_sink(handle, b"def")
    assert path.read_bytes() == b"abcdef"


async def test_write_to_async_sink() -> None:
    received: list[bytes] = []

    class _Sink:
        async def write(self, data: bytes) -> None:
            received.append(data)

    await write_to_sink(_Sink(), b"chunk")

    assert received == [b"chunk"]


def test_validate_key() -> None:
    assert validate_key("logs/log.txt") == "logs/log.txt"
    assert validate_key("a/..b/c.") == "a/..b/c."
    with pytest.raises(InvalidKeyError):
        validate_key("")
    with pytest.raises(ValueError, match="non-empty string"):
        validate_key(b"bytes-key")


@pytest.mark.parametrize(
    ("key", "message"),
    [
        ("a//b", "segments"),
        ("a/./b", "segments"),
        ("a/..", "segments"),
        (".", "segments"),
        ("dir/", "start or end"),
        ("/lead", "start or end"),
    ],
)
def test_validate_key_rejects_normalized_paths(key: str, message: str) -> None:
    with pytest.raises(InvalidKeyError, match=message):
        validate_key(key)


def test_check_upload_arguments() -> None:
    check_upload_arguments(b"data", 4)
    check_upload_arguments(io.BytesIO(), None)
    with pytest.raises(TypeError, match="not str"):
        check_upload_arguments("text", None)
    with pytest.raises(ValueError, match="size_hint"):
        check_upload_arguments(b"", -1)
