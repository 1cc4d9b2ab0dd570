import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from errors import StorageAccessError
from paths import object_key

logger = logging.getLogger(__name__)

# HEAD responses carry no error body, so S3 reports a missing key as "404".
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

# Edge functions get a few seconds at most; keep the single probe bounded and
# leave retries to the SDK's standard mode.
CLIENT_CONFIG = Config(connect_timeout=1,
                       read_timeout=2,
                       retries={"mode": "standard", "max_attempts": 2})


def make_s3_client(region: str):
    return boto3.client("s3", region_name=region, config=CLIENT_CONFIG)


class S3ExistenceProbe:
    """Checks whether a fallback document exists in the static assets bucket."""

    def __init__(self, bucket: str, client):
        self.bucket = bucket
        self.client = client

    def exists(self, path: str) -> bool:
        key = object_key(path)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                logger.debug("s3://%s/%s not found", self.bucket, key)
                return False
            raise StorageAccessError(self.bucket, key, code or "ClientError") from e
        except BotoCoreError as e:
            raise StorageAccessError(self.bucket, key, type(e).__name__) from e
        return True
