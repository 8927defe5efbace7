"""S3 (or S3-compatible) media store; needs the ``staync[s3]`` extra."""

from __future__ import annotations

import hashlib
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import aioboto3
from botocore.exceptions import ClientError

from staync.lib.storage.base import StoredFile

if TYPE_CHECKING:
    from staync.config import S3Config


class S3StorageBackend:
    """Objects live under ``prefix/`` in one bucket.

    URLs are, in order of preference: ``public_url`` joined with the object
    key, the bucket's public address for ``public-read`` ACLs, or a presigned
    GET that expires after ``presign_ttl`` seconds.
    """

    def __init__(self, config: S3Config) -> None:
        self.config = config
        self.bucket = config.bucket
        self.prefix = config.prefix.strip("/")
        self._session = aioboto3.Session()
        self._client_options: dict[str, Any] = {"region_name": config.region}
        if config.endpoint_url:
            self._client_options["endpoint_url"] = config.endpoint_url
        if config.access_key_id and config.secret_access_key:
            self._client_options["aws_access_key_id"] = config.access_key_id
            self._client_options["aws_secret_access_key"] = config.secret_access_key

    def _s3(self):
        return self._session.client("s3", **self._client_options)

    def object_key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    async def put(self, key: str, data: bytes, content_type: str) -> StoredFile:
        extra = {"ACL": self.config.acl} if self.config.acl else {}
        async with self._s3() as s3:
            await s3.put_object(
                Bucket=self.bucket,
                Key=self.object_key(key),
                Body=data,
                ContentType=content_type,
                # Keys are content hashes, so an object never changes
                CacheControl="public, max-age=31536000, immutable",
                **extra,
            )
        return StoredFile(
            key=key,
            url=await self.get_url(key),
            content_type=content_type,
            size=len(data),
            content_hash=hashlib.sha256(data).hexdigest(),
        )

    async def get(self, key: str) -> bytes:
        async with self._s3() as s3:
            obj = await s3.get_object(Bucket=self.bucket, Key=self.object_key(key))
            async with obj["Body"] as body:
                return await body.read()

    async def delete(self, key: str) -> None:
        async with self._s3() as s3:
            await s3.delete_object(Bucket=self.bucket, Key=self.object_key(key))

    async def exists(self, key: str) -> bool:
        async with self._s3() as s3:
            try:
                await s3.head_object(Bucket=self.bucket, Key=self.object_key(key))
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                    return False
                raise
        return True

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        skip = len(self.prefix) + 1 if self.prefix else 0
        async with self._s3() as s3:
            pages = s3.get_paginator("list_objects_v2").paginate(Bucket=self.bucket, Prefix=self.object_key(prefix))
            async for page in pages:
                for obj in page.get("Contents", ()):
                    yield obj["Key"][skip:]

    async def get_url(self, key: str) -> str:
        object_key = self.object_key(key)
        if self.config.public_url:
            return f"{self.config.public_url.rstrip('/')}/{object_key}"
        if self.config.acl == "public-read":
            if self.config.endpoint_url:
                return f"{self.config.endpoint_url.rstrip('/')}/{self.bucket}/{object_key}"
            return f"https://{self.bucket}.s3.{self.config.region}.amazonaws.com/{object_key}"
        async with self._s3() as s3:
            return await s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": object_key},
                ExpiresIn=self.config.presign_ttl,
            )
