"""Azure Blob storage backend using obstore, authenticated with a SAS token."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from mypy_extensions import mypyc_attr
from obstore.exceptions import BaseError as ObstoreError
from obstore.store import AzureStore

from cosistore.config import DEFAULT_CHUNK_SIZE, AzureSecret
from cosistore.exceptions import InvalidCredentialError
from cosistore.storage._operations import delete_object, get_object, put_object

if TYPE_CHECKING:
    from cosistore.storage._utils import ByteSink, ByteSource

__all__ = ("AzureBackend", "parse_sas_url")


def parse_sas_url(access_token: str) -> tuple[str, str, str]:
    """Split a SAS URL into account endpoint, account name and SAS query.

    Args:
        access_token: ``https://<account>.blob.core.windows.net[/<container>]?sv=...&sig=...``

    Raises:
        InvalidCredentialError: If the token is not an HTTPS URL with a SAS query.

    Returns:
        ``(endpoint, account_name, sas_query)``
    """
    parts = urlsplit(access_token.strip())
    if parts.scheme != "https" or not parts.hostname:
        raise InvalidCredentialError("Azure", "access token must be an https:// SAS URL")
    if not parts.query:
        raise InvalidCredentialError("Azure", "access token carries no shared access signature")
    account_name = parts.hostname.split(".", 1)[0]
    return f"{parts.scheme}://{parts.netloc}", account_name, parts.query


@mypyc_attr(allow_interpreted_subclasses=True)
class AzureBackend:
    """Object storage backend for Azure Blob containers.

    Authenticates with the shared access signature from the mounted secret and
    always talks HTTPS. The token expiry is not checked here: an expired token is
    rejected by the service on first use and surfaces as a transport error.
    """

    __slots__ = (
        "_bucket_name",
        "account_name",
        "chunk_size",
        "default_timeout",
        "endpoint_url",
        "expires_at",
        "log_operations",
        "store",
    )

    def __init__(
        self,
        container_name: str,
        credential: AzureSecret,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_timeout: float | None = None,
        log_operations: bool = True,
    ) -> None:
        """Initialize the Azure backend.

        Args:
            container_name: Container every operation targets.
            credential: SAS URL and its informational expiry.
            chunk_size: Streaming chunk size in bytes.
            default_timeout: Deadline applied when an operation passes none.
            log_operations: Log successful operations.

        Raises:
            InvalidCredentialError: If the token is not a usable SAS URL.
        """
        if not credential.access_token:
            raise InvalidCredentialError("Azure", "'access_token' must not be empty")
        endpoint, account_name, sas_query = parse_sas_url(credential.access_token)

        self._bucket_name = container_name
        self.endpoint_url = endpoint
        self.account_name = account_name
        # TODO: renew the SAS token through a credential provider once COSI publishes rotated secrets.
        self.expires_at = credential.expiry_time_stamp
        self.chunk_size = chunk_size
        self.default_timeout = default_timeout
        self.log_operations = log_operations
        try:
            self.store: Any = AzureStore(
                container_name,
                account_name=account_name,
                endpoint=endpoint,
                sas_key=sas_query,
            )
        except (ObstoreError, ValueError) as exc:
            raise InvalidCredentialError("Azure", str(exc)) from exc

    def __repr__(self) -> str:
        return f"AzureBackend(container_name={self._bucket_name!r}, endpoint_url={self.endpoint_url!r})"

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "azure"

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    async def put(
        self, key: str, data: ByteSource, size_hint: int | None = None, *, timeout: float | None = None
    ) -> None:
        """Upload ``data`` under ``key`` as a block blob."""
        await put_object(self, key, data, size_hint, timeout=timeout)

    async def get(self, key: str, sink: ByteSink, *, timeout: float | None = None) -> int:
        """Stream the blob ``key`` into ``sink``."""
        return await get_object(self, key, sink, timeout=timeout)

    async def delete(self, key: str, *, timeout: float | None = None) -> None:
        """Delete the blob ``key``. A missing blob is reported however the service reports it."""
        await delete_object(self, key, timeout=timeout)
