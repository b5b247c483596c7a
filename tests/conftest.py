from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cosistore.config import AzureSecret, BucketInfo, S3Secret

here = Path(__file__).parent
root_path = here.parent

AZURE_SAS_URL = "https://cosiacct.blob.core.windows.net/?sv=2022-11-02&ss=b&srt=co&sp=rwdl&sig=c2lnbmF0dXJl"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def s3_secret() -> S3Secret:
    return S3Secret(
        endpoint="s3.example.com",
        region="us-east-1",
        access_key_id="AKIAEXAMPLE",
        access_secret_key="secret",
    )


@pytest.fixture
def azure_secret() -> AzureSecret:
    return AzureSecret(access_token=AZURE_SAS_URL, expiry_time_stamp=datetime.now(timezone.utc) + timedelta(hours=1))


@pytest.fixture
def s3_bucket_info(s3_secret: S3Secret) -> BucketInfo:
    return BucketInfo(bucket_name="logs", authentication_type="Key", protocols=["S3"], secret_s3=s3_secret)


@pytest.fixture
def azure_bucket_info(azure_secret: AzureSecret) -> BucketInfo:
    return BucketInfo(bucket_name="logs", authentication_type="Key", protocols=["Azure"], secret_azure=azure_secret)
