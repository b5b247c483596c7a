from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cosistore.storage._utils import ByteSink, ByteSource

__all__ = ("ObjectStorageProtocol",)


@runtime_checkable
class ObjectStorageProtocol(Protocol):
    """Uniform interface implemented by every storage backend.

    Callers program against this protocol and never against a concrete backend,
    so the same code runs whichever protocol the mounted configuration selects.
    Every operation accepts a ``timeout`` in seconds; when it elapses the remote
    call is cancelled and :class:`~cosistore.exceptions.OperationCancelledError`
    is raised. Cancelling the calling task cancels the remote call as well.
    """

    @property
    def backend_type(self) -> str:
        """Return backend type identifier (e.g., 's3', 'azure')."""
        ...

    @property
    def bucket_name(self) -> str:
        """Return the bucket or container this backend is bound to."""
        ...

    async def put(
        self, key: str, data: "ByteSource", size_hint: Optional[int] = None, *, timeout: Optional[float] = None
    ) -> None:
        """Upload ``data`` under ``key``, replacing any existing object.

        Args:
            key: Object name within the bucket.
            data: Bytes, a binary file-like object, or an iterable of byte chunks.
            size_hint: Exact number of bytes ``data`` must yield, if known.
            timeout: Deadline in seconds for the whole upload.

        Raises:
            ContentLengthMismatchError: If ``data`` yields more or fewer bytes than ``size_hint``.
            StorageTransportError: If the remote service rejects the write or the transport fails.
            OperationCancelledError: If the deadline expires.
        """
        ...

    async def get(self, key: str, sink: "ByteSink", *, timeout: Optional[float] = None) -> int:
        """Stream the object ``key`` into ``sink``.

        Data already written to ``sink`` is left in place when the download fails.

        Args:
            key: Object name within the bucket.
            sink: Object with a sync or async ``write`` method.
            timeout: Deadline in seconds for the whole download.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageTransportError: If the transport fails mid-stream.
            OperationCancelledError: If the deadline expires.

        Returns:
            Number of bytes written to ``sink``.
        """
        ...

    async def delete(self, key: str, *, timeout: Optional[float] = None) -> None:
        """Remove the object ``key``.

        Whether deleting a missing object fails depends on the remote service.

        Args:
            key: Object name within the bucket.
            timeout: Deadline in seconds.

        Raises:
            StorageTransportError: If the remote service rejects the delete.
            OperationCancelledError: If the deadline expires.
        """
        ...
