from cosistore.storage.backends.azure import AzureBackend
from cosistore.storage.backends.s3 import S3Backend

__all__ = ("AzureBackend", "S3Backend")
