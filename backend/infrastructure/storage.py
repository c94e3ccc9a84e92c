"""Object storage client over the S3-compatible API (Cloudflare R2, MinIO, S3).

Episode audio lives under ``audio/`` and cover art under ``images/`` in one
bucket. The client is constructed explicitly from configuration and passed to
the code that needs it; there is no module-level client.

Environment Variables (read through podsite Settings):
    STORAGE_BUCKET: bucket name (default "episodes")
    STORAGE_ENDPOINT_URL: S3 endpoint, e.g. https://<account>.r2.cloudflarestorage.com
    STORAGE_ACCESS_KEY_ID / STORAGE_SECRET_ACCESS_KEY: credentials
    STORAGE_PUBLIC_BASE_URL: public URL prefix objects are served from
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Optional
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r'[<>:"/\\|?*\s]+')


class StorageError(Exception):
    """An object could not be written to or removed from the bucket."""


def sanitize_filename(name: str) -> str:
    cleaned = _UNSAFE_NAME_RE.sub("-", (name or "").strip()).strip("-")
    return cleaned or "upload"


def timestamped_key(prefix: str, filename: str, now_ms: Optional[int] = None) -> str:
    """``<prefix>/<epoch-ms>-<filename>`` so repeated uploads of one filename never collide."""
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    return f"{prefix.strip('/')}/{stamp}-{sanitize_filename(filename)}"


class StorageClient:
    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "auto",
        public_base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.public_base_url = (public_base_url or "").rstrip("/") or None
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
                region_name=region,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Any) -> "StorageClient":
        return cls(
            settings.STORAGE_BUCKET,
            endpoint_url=settings.STORAGE_ENDPOINT_URL,
            access_key_id=settings.STORAGE_ACCESS_KEY_ID,
            secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY,
            region=settings.STORAGE_REGION,
            public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
        )

    # --- URLs ------------------------------------------------------------------

    def public_url(self, key: str) -> str:
        quoted = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url}/{quoted}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quoted}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Recover the object key from a URL produced by ``public_url``.

        Returns None for URLs that do not point into this bucket (for example an
        externally hosted cover image pasted by an admin).
        """
        if not url:
            return None
        for base in filter(None, (
            self.public_base_url,
            f"{self.endpoint_url.rstrip('/')}/{self.bucket}" if self.endpoint_url else None,
            f"https://{self.bucket}.s3.amazonaws.com",
        )):
            if url.startswith(base + "/"):
                return unquote(urlparse(url[len(base) + 1:]).path) or None
        marker = f"/{self.bucket}/"
        path = urlparse(url).path
        if marker in path:
            return unquote(path.split(marker, 1)[1]) or None
        return None

    # --- operations ------------------------------------------------------------

    def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        try:
            self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as exc:
            logger.error("[storage] Failed to upload %s: %s", key, exc)
            raise StorageError(f"Upload failed for {key}") from exc
        logger.info("[storage] Uploaded %d bytes to %s", len(data), key)
        return self.public_url(key)

    def download_bytes(self, key: str) -> Optional[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.warning("[storage] Object not found: %s", key)
                return None
            raise StorageError(f"Download failed for {key}") from exc
        data = response["Body"].read()
        logger.info("[storage] Downloaded %d bytes from %s", len(data), key)
        return data

    def delete(self, key: str) -> bool:
        """Delete ``key``; failures are logged and reported as False."""
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.error("[storage] Failed to delete %s: %s", key, exc)
            return False
        logger.info("[storage] Deleted %s from bucket %s", key, self.bucket)
        return True

    def delete_url(self, url: Optional[str]) -> bool:
        key = self.key_from_url(url)
        if not key:
            return False
        return self.delete(key)
