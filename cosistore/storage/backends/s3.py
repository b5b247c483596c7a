"""S3-compatible object storage backend using obstore."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mypy_extensions import mypyc_attr
from obstore.exceptions import BaseError as ObstoreError
from obstore.store import S3Store

from cosistore.config import DEFAULT_CHUNK_SIZE, S3Secret
from cosistore.exceptions import InvalidCredentialError
from cosistore.storage._operations import delete_object, get_object, put_object

if TYPE_CHECKING:
    from cosistore.storage._utils import ByteSink, ByteSource

__all__ = ("S3Backend",)


def _endpoint_url(endpoint: str, use_ssl: bool) -> str:
    if "://" in endpoint:
        return endpoint.rstrip("/")
    scheme = "https" if use_ssl else "http"
    return f"{scheme}://{endpoint.rstrip('/')}"


@mypyc_attr(allow_interpreted_subclasses=True)
class S3Backend:
    """Object storage backend for S3 and S3-compatible services (MinIO, Ceph RGW).

    Holds one long-lived obstore client bound to a single endpoint, region,
    static key pair and bucket. Nothing is sent over the network until the first
    operation, so a backend can be built while the endpoint is unreachable.
    """

    __slots__ = ("_bucket_name", "chunk_size", "default_timeout", "endpoint_url", "log_operations", "region", "store")

    def __init__(
        self,
        bucket_name: str,
        credential: S3Secret,
        *,
        use_ssl: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_timeout: float | None = None,
        log_operations: bool = True,
    ) -> None:
        """Initialize the S3 backend.

        Args:
            bucket_name: Bucket every operation targets.
            credential: Endpoint, region and static key pair.
            use_ssl: Use HTTPS for endpoints given without a scheme. Plain HTTP
                is allowed on the client when disabled.
            chunk_size: Streaming chunk size in bytes.
            default_timeout: Deadline applied when an operation passes none.
            log_operations: Log successful operations.

        Raises:
            InvalidCredentialError: If a credential field is empty or the client
                rejects the configuration.
        """
        for field_name in ("endpoint", "region", "access_key_id", "access_secret_key"):
            if not getattr(credential, field_name):
                raise InvalidCredentialError("S3", f"'{field_name}' must not be empty")

        self._bucket_name = bucket_name
        self.endpoint_url = _endpoint_url(credential.endpoint, use_ssl)
        self.region = credential.region
        self.chunk_size = chunk_size
        self.default_timeout = default_timeout
        self.log_operations = log_operations
        try:
            self.store: Any = S3Store(
                bucket_name,
                endpoint=self.endpoint_url,
                region=credential.region,
                access_key_id=credential.access_key_id,
                secret_access_key=credential.access_secret_key,
                virtual_hosted_style_request=False,
                client_options={"allow_http": self.endpoint_url.startswith("http://")},
            )
        except (ObstoreError, ValueError) as exc:
            raise InvalidCredentialError("S3", str(exc)) from exc

    def __repr__(self) -> str:
        return f"S3Backend(bucket_name={self._bucket_name!r}, endpoint_url={self.endpoint_url!r})"

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "s3"

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    async def put(
        self, key: str, data: ByteSource, size_hint: int | None = None, *, timeout: float | None = None
    ) -> None:
        """Upload ``data`` under ``key``; large streams go up as multipart uploads."""
        await put_object(self, key, data, size_hint, timeout=timeout)

    async def get(self, key: str, sink: ByteSink, *, timeout: float | None = None) -> int:
        """Stream the object ``key`` into ``sink`` chunk by chunk."""
        return await get_object(self, key, sink, timeout=timeout)

    async def delete(self, key: str, *, timeout: float | None = None) -> None:
        """Delete the object ``key``. S3 reports success for keys that do not exist."""
        await delete_object(self, key, timeout=timeout)
