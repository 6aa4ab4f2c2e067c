"""S3-compatible object storage for rendered documents and input snapshots."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..utils.config import StorageConfig
from ..utils.errors import StorageError

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".html"
SNAPSHOT_SUFFIX = ".input.json"
LEGACY_SNAPSHOT_SUFFIX = ".json"
SNAPSHOT_CONTENT_TYPE = "application/json"

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def document_key(filename: str) -> str:
    return f"{filename}{DOCUMENT_SUFFIX}"


def snapshot_key(filename: str) -> str:
    return f"{filename}{SNAPSHOT_SUFFIX}"


def _is_missing(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in _MISSING_CODES or status == 404


class DocumentStore:
    """
    Object storage adapter (AWS S3 or Cloudflare R2 through its S3 API).

    Keys per document:
    - ``<filename>.html``: rendered document text
    - ``<filename>.input.json``: snapshot of the raw input, for regeneration

    The blocking boto3 calls run in a worker thread.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        region: str = "auto",
        client: Optional[Any] = None
    ):
        """
        Initialize DocumentStore.

        Args:
            bucket: Bucket name
            endpoint_url: Custom S3 endpoint (e.g. an R2 account endpoint)
            region: Region name ("auto" for R2)
            client: Optional pre-built S3 client (used in tests)
        """
        self.bucket = bucket
        if client is not None:
            self.client = client
        else:
            self.client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=region,
                config=BotoConfig(signature_version="s3v4"),
            )

        logger.info(f"Initialized DocumentStore: bucket={bucket}, endpoint={endpoint_url or 'aws'}")

    @classmethod
    def from_config(cls, config: StorageConfig, client: Optional[Any] = None) -> "DocumentStore":
        return cls(
            bucket=config.bucket,
            endpoint_url=config.endpoint_url,
            region=config.region,
            client=client,
        )

    async def put(
        self,
        key: str,
        content: str,
        content_type: str = "text/plain",
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Store a text object.

        Raises:
            StorageError: If the write fails
        """
        try:
            params = {
                "Bucket": self.bucket,
                "Key": key,
                "Body": content.encode("utf-8"),
                "ContentType": content_type,
                "Metadata": {name: str(value) for name, value in (metadata or {}).items()},
            }
            await asyncio.to_thread(self.client.put_object, **params)
        except (ClientError, BotoCoreError, UnicodeEncodeError, TypeError, ValueError) as e:
            logger.error(f"Failed to store {key}: {str(e)}")
            raise StorageError.write_failed(key, e) from e
        logger.info(f"Stored {key} ({content_type}, {len(params['Body'])} bytes)")

    async def get(self, key: str) -> Optional[str]:
        """
        Fetch a text object.

        Returns:
            Object content, or None if the key does not exist

        Raises:
            StorageError: For failures other than a missing key
        """
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise StorageError.read_failed(key, e) from e
        except BotoCoreError as e:
            raise StorageError.read_failed(key, e) from e

        body = await asyncio.to_thread(response["Body"].read)
        return body.decode("utf-8")

    async def head(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Fetch object metadata.

        Returns:
            Dict with content_type, content_length and metadata, or None if
            the key does not exist
        """
        try:
            response = await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise StorageError.read_failed(key, e) from e
        except BotoCoreError as e:
            raise StorageError.read_failed(key, e) from e

        return {
            "content_type": response.get("ContentType"),
            "content_length": response.get("ContentLength"),
            "metadata": response.get("Metadata", {}),
        }

    async def put_document(self, filename: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Store rendered document text under ``<filename>.html``."""
        key = document_key(filename)
        await self.put(key, text, content_type="text/html", metadata=metadata)
        return key

    async def put_input_snapshot(
        self,
        filename: str,
        raw_input: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Store the raw input under ``<filename>.input.json``.

        The content type is always application/json.
        """
        key = snapshot_key(filename)
        # ASCII escapes keep lone surrogates from breaking the UTF-8 body
        try:
            content = json.dumps(raw_input, ensure_ascii=True, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize input for {key}: {str(e)}")
            raise StorageError.write_failed(key, e) from e
        await self.put(key, content, content_type=SNAPSHOT_CONTENT_TYPE, metadata=metadata)
        return key

    async def get_input_snapshot(self, filename: str) -> Dict[str, Any]:
        """
        Load the raw input stored for a document.

        Tries ``<filename>.input.json`` first, then the legacy ``<filename>.json``.

        Raises:
            StorageError: If no snapshot exists or it is not a JSON object
        """
        tried: List[str] = []
        for key in (snapshot_key(filename), f"{filename}{LEGACY_SNAPSHOT_SUFFIX}"):
            tried.append(key)
            content = await self.get(key)
            if content is None:
                logger.debug(f"No input snapshot at {key}")
                continue
            try:
                raw_input = json.loads(content)
            except json.JSONDecodeError as e:
                raise StorageError.snapshot_invalid(key, e) from e
            if not isinstance(raw_input, dict):
                raise StorageError.snapshot_invalid(key, ValueError("expected a JSON object"))
            logger.info(f"Loaded input snapshot from {key}")
            return raw_input

        raise StorageError.snapshot_not_found(filename, tried)
