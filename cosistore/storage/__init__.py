"""Storage abstraction layer for cosistore.

This module provides:
- A uniform put/get/delete protocol shared by every backend
- S3 and Azure Blob backends built on obstore
- A factory selecting the backend from a BucketInfo document
"""

from cosistore.storage.factory import create_storage_client, create_storage_client_from_file
from cosistore.storage.protocol import ObjectStorageProtocol

__all__ = (
    "ObjectStorageProtocol",
    "create_storage_client",
    "create_storage_client_from_file",
)
