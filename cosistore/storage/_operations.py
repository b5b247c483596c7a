"""Object operations shared by the obstore-backed backends.

S3 and Azure differ only in how their obstore client is built. Once built, the
client is driven the same way, so each backend delegates ``put``, ``get`` and
``delete`` to the functions here, passing itself as the binding.
"""

import logging
from typing import Any, Optional, Protocol

from cosistore.storage._utils import (
    ByteSink,
    ByteSource,
    UploadStream,
    check_upload_arguments,
    prepare_upload_body,
    validate_key,
    write_to_sink,
)
from cosistore.storage.errors import execute_storage_operation
from cosistore.utils.logging import get_logger, log_with_context

__all__ = ("StoreBinding", "delete_object", "get_object", "put_object")

logger = get_logger("storage.operations")


class StoreBinding(Protocol):
    """What the shared operations need from a backend."""

    store: Any
    chunk_size: int
    default_timeout: Optional[float]
    log_operations: bool

    @property
    def backend_type(self) -> str: ...

    @property
    def bucket_name(self) -> str: ...


def _effective_timeout(binding: StoreBinding, timeout: Optional[float]) -> Optional[float]:
    return binding.default_timeout if timeout is None else timeout


def _log_success(binding: StoreBinding, event: str, key: str, **fields: Any) -> None:
    if binding.log_operations:
        log_with_context(
            logger,
            logging.DEBUG,
            event,
            backend_type=binding.backend_type,
            bucket=binding.bucket_name,
            path=key,
            **fields,
        )


async def put_object(
    binding: StoreBinding, key: str, data: ByteSource, size_hint: Optional[int], *, timeout: Optional[float]
) -> None:
    """Upload ``data`` under ``key`` through the binding's store.

    Bytes go up in a single request; streams are handed to the client as an
    async iterator, which it uploads in parts. A length mismatch raised while the
    client consumes the stream is reported as itself, not as the client's wrapper.
    """
    key = validate_key(key)
    check_upload_arguments(data, size_hint)
    backend_type = binding.backend_type

    async def _put() -> None:
        body = await prepare_upload_body(
            data, size_hint, chunk_size=binding.chunk_size, key=key, backend=backend_type
        )
        try:
            await binding.store.put_async(key, body)
        except Exception:
            if isinstance(body, UploadStream) and body.error is not None:
                raise body.error from None
            raise

    await execute_storage_operation(
        _put, backend=backend_type, operation="put", key=key, timeout=_effective_timeout(binding, timeout)
    )
    _log_success(binding, "storage.object.put", key)


async def get_object(binding: StoreBinding, key: str, sink: ByteSink, *, timeout: Optional[float]) -> int:
    """Stream the object ``key`` into ``sink`` and return the number of bytes written."""
    key = validate_key(key)

    async def _get() -> int:
        result = await binding.store.get_async(key)
        written = 0
        async for chunk in result.stream(min_chunk_size=binding.chunk_size):
            data = bytes(chunk)
            await write_to_sink(sink, data)
            written += len(data)
        return written

    written = await execute_storage_operation(
        _get, backend=binding.backend_type, operation="get", key=key, timeout=_effective_timeout(binding, timeout)
    )
    _log_success(binding, "storage.object.get", key, size_bytes=written)
    return written


async def delete_object(binding: StoreBinding, key: str, *, timeout: Optional[float]) -> None:
    key = validate_key(key)

    async def _delete() -> None:
        await binding.store.delete_async(key)

    await execute_storage_operation(
        _delete,
        backend=binding.backend_type,
        operation="delete",
        key=key,
        timeout=_effective_timeout(binding, timeout),
    )
    _log_success(binding, "storage.object.deleted", key)
