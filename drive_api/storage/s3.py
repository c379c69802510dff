from urllib.parse import quote

import boto3
from botocore.config import Config

from drive_api.config import Settings


class S3Storage:
    def __init__(self, settings: Settings, client=None):
        self.bucket = settings.S3_BUCKET
        self.client = client or boto3.client(
            "s3",
            region_name = settings.S3_REGION,
            endpoint_url = settings.S3_ENDPOINT_URL,
            aws_access_key_id = settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key = settings.S3_SECRET_ACCESS_KEY,
            config = Config(
                connect_timeout=settings.S3_TIMEOUT_SECONDS,
                read_timeout=settings.S3_TIMEOUT_SECONDS,
                # callers decide whether to retry
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )

    def put(self, *, key: str, data: bytes, content_type: str, metadata: dict[str, str] | None = None) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata or {},
        )

    def signed_get_url(self, *, key: str, expires_in: int = 3600, filename: str | None = None) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if filename:
            params["ResponseContentDisposition"] = f"inline; filename*=UTF-8''{quote(filename)}"

        return self.client.generate_presigned_url("get_object", Params=params, ExpiresIn=expires_in)

    def delete(self, *, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def close(self) -> None:
        self.client.close()
