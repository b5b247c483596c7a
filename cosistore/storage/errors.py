"""Translation of object store client failures into cosistore exceptions.

Backends run every remote call through :func:`execute_storage_operation`, which
applies the caller's deadline, maps client errors onto the cosistore hierarchy
and emits one structured log record per failure.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Final, Optional, TypeVar

import anyio
from obstore.exceptions import BaseError as ObstoreError
from obstore.exceptions import NotFoundError as ObstoreNotFoundError

from cosistore.exceptions import CosiStoreError, ObjectNotFoundError, OperationCancelledError, StorageTransportError
from cosistore.utils.logging import get_logger, log_with_context

__all__ = ("execute_storage_operation", "is_retryable")

logger = get_logger("storage.errors")

T = TypeVar("T")

_RETRYABLE_ERRORS: Final[tuple[type[BaseException], ...]] = (ConnectionError, TimeoutError)


def is_retryable(exc: BaseException) -> bool:
    """Whether a failure looks transient. Informational only; nothing is retried here."""
    if isinstance(exc, (FileNotFoundError, PermissionError, ObstoreNotFoundError)):
        return False
    return isinstance(exc, _RETRYABLE_ERRORS)


def _log_failure(level: int, event: str, exc: BaseException, **fields: Any) -> None:
    log_with_context(
        logger, level, event, exception_type=type(exc).__name__, retryable=is_retryable(exc), **fields
    )


async def execute_storage_operation(
    func: Callable[[], Awaitable[T]],
    *,
    backend: str,
    operation: str,
    key: str,
    timeout: Optional[float] = None,
) -> T:
    """Run a remote storage call under a deadline and translate its failures.

    Args:
        func: Zero-argument coroutine factory performing the remote call.
        backend: Backend type reported in errors and logs.
        operation: Operation name reported in errors and logs.
        key: Object key reported in errors and logs.
        timeout: Deadline in seconds, ``None`` for no deadline.

    Raises:
        ObjectNotFoundError: The remote object does not exist.
        StorageTransportError: Any other client or transport failure, including a
            key or argument the client refuses to parse.
        OperationCancelledError: The deadline expired.

    Returns:
        Whatever ``func`` returns.
    """
    fields: dict[str, Any] = {"backend_type": backend, "operation": operation, "path": key}
    try:
        with anyio.fail_after(timeout):
            try:
                return await func()
            except CosiStoreError:
                raise
            except (ObstoreNotFoundError, FileNotFoundError) as exc:
                _log_failure(logging.INFO, "storage.object.missing", exc, **fields)
                msg = f"Object not found: {exc}"
                raise ObjectNotFoundError(msg, operation=operation, key=key, backend=backend) from exc
            except (ObstoreError, OSError, ValueError) as exc:
                # ValueError: the client refused to parse the key or an argument.
                _log_failure(logging.ERROR, "storage.operation.failed", exc, **fields)
                msg = f"Storage operation failed: {exc}"
                raise StorageTransportError(msg, operation=operation, key=key, backend=backend) from exc
    except TimeoutError as exc:
        if isinstance(exc, CosiStoreError):
            raise
        _log_failure(logging.WARNING, "storage.operation.cancelled", exc, timeout=timeout, **fields)
        raise OperationCancelledError(operation=operation, key=key, backend=backend, timeout=timeout) from exc
