"""Durable storage backend: DynamoDB for metadata, S3 for fragment data."""

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

import boto3
from boto3.dynamodb.conditions import Key
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from common.logging_config import get_logger
from fragments.config import Settings
from fragments.exceptions import BackendError, FragmentNotFoundError
from fragments.storage.base import StorageBackend
from fragments.utils import blob_key

logger = get_logger(__name__)

_BOTO_CONFIG = BotoConfig(
    connect_timeout=5,
    read_timeout=30,
    retries={"max_attempts": 5, "mode": "standard"},
)


def _from_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a DynamoDB item back into a plain metadata record."""
    record = dict(item)
    if isinstance(record.get("size"), Decimal):
        record["size"] = int(record["size"])
    return record


class AwsBackend(StorageBackend):
    """
    Metadata lives in a DynamoDB table keyed (ownerId HASH, id RANGE) so that
    per-owner listing is a single query; data lives in an S3 bucket under the
    key "ownerId/id".

    boto3 calls are blocking, so each one runs in a worker thread. The
    table and client are created once and shared across requests.
    """

    name = "aws"

    def __init__(
        self,
        table_name: Optional[str],
        bucket_name: Optional[str],
        region: str,
        dynamodb_endpoint_url: Optional[str] = None,
        s3_endpoint_url: Optional[str] = None,
        table=None,
        s3_client=None,
    ):
        self.table_name = table_name
        self.bucket_name = bucket_name

        if table is None and table_name:
            dynamodb = boto3.resource(
                "dynamodb",
                region_name=region,
                endpoint_url=dynamodb_endpoint_url,
                config=_BOTO_CONFIG,
            )
            table = dynamodb.Table(table_name)

        if s3_client is None:
            s3_client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=s3_endpoint_url,
                config=_BOTO_CONFIG.merge(BotoConfig(s3={"addressing_style": "path"})),
            )

        self.table = table
        self.s3 = s3_client

        logger.info(
            f"AWS storage configured [table={table_name}] [bucket={bucket_name}] [region={region}]"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AwsBackend":
        return cls(
            table_name=settings.dynamodb_table_name,
            bucket_name=settings.s3_bucket_name,
            region=settings.aws_region,
            dynamodb_endpoint_url=settings.dynamodb_endpoint_url,
            s3_endpoint_url=settings.s3_endpoint_url,
        )

    def _require_table(self):
        if not self.table_name or self.table is None:
            logger.error("DynamoDB table name missing")
            raise BackendError("AWS_DYNAMODB_TABLE_NAME is not set")
        return self.table

    def _require_bucket(self) -> str:
        if not self.bucket_name:
            logger.error("S3 bucket name missing")
            raise BackendError("AWS_S3_BUCKET_NAME is not set")
        return self.bucket_name

    async def _call(self, description: str, func, **kwargs):
        try:
            return await asyncio.to_thread(func, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error {description}: {e}", exc_info=True)
            raise BackendError(f"Error {description}") from e

    async def put_metadata(self, record: Dict[str, Any]) -> Dict[str, Any]:
        table = self._require_table()
        await self._call(
            f"writing fragment metadata [owner_id={record.get('ownerId')}] [fragment_id={record.get('id')}]",
            table.put_item,
            Item=record,
        )
        return dict(record)

    async def get_metadata(self, owner_id: str, fragment_id: str) -> Optional[Dict[str, Any]]:
        table = self._require_table()
        response = await self._call(
            f"reading fragment metadata [owner_id={owner_id}] [fragment_id={fragment_id}]",
            table.get_item,
            Key={"ownerId": owner_id, "id": fragment_id},
        )
        item = response.get("Item")
        return _from_item(item) if item is not None else None

    async def list_metadata(self, owner_id: str, expand: bool = False) -> List[Union[str, Dict[str, Any]]]:
        table = self._require_table()

        params = {"KeyConditionExpression": Key("ownerId").eq(owner_id)}
        if not expand:
            params["ProjectionExpression"] = "#id"
            params["ExpressionAttributeNames"] = {"#id": "id"}

        items = []
        while True:
            response = await self._call(
                f"listing fragments [owner_id={owner_id}]",
                table.query,
                **params,
            )
            items.extend(response.get("Items", []))

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            params["ExclusiveStartKey"] = last_key

        if not expand:
            return [item["id"] for item in items]
        return [_from_item(item) for item in items]

    async def delete_metadata(self, owner_id: str, fragment_id: str) -> None:
        table = self._require_table()
        try:
            await asyncio.to_thread(
                table.delete_item,
                Key={"ownerId": owner_id, "id": fragment_id},
                ConditionExpression="attribute_exists(id)",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise FragmentNotFoundError(f"Fragment {fragment_id} not found")
            logger.error(
                f"Error deleting fragment metadata [owner_id={owner_id}] [fragment_id={fragment_id}]: {e}",
                exc_info=True,
            )
            raise BackendError("Error deleting fragment metadata") from e
        except BotoCoreError as e:
            logger.error(
                f"Error deleting fragment metadata [owner_id={owner_id}] [fragment_id={fragment_id}]: {e}",
                exc_info=True,
            )
            raise BackendError("Error deleting fragment metadata") from e

    async def put_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        bucket = self._require_bucket()
        key = blob_key(owner_id, fragment_id)
        await self._call(
            f"uploading fragment data [bucket={bucket}] [key={key}]",
            self.s3.put_object,
            Bucket=bucket,
            Key=key,
            Body=data,
        )

    def _read_object(self, bucket: str, key: str) -> bytes:
        response = self.s3.get_object(Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def get_data(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        bucket = self._require_bucket()
        key = blob_key(owner_id, fragment_id)
        try:
            return await asyncio.to_thread(self._read_object, bucket, key)
        except (ClientError, BotoCoreError) as e:
            # a missing blob and a failed read both look like "no data" to the owner
            logger.warning(f"S3 GetObject failed [bucket={bucket}] [key={key}]: {e}")
            return None

    async def delete_data(self, owner_id: str, fragment_id: str) -> None:
        bucket = self._require_bucket()
        key = blob_key(owner_id, fragment_id)
        await self._call(
            f"deleting fragment data [bucket={bucket}] [key={key}]",
            self.s3.delete_object,
            Bucket=bucket,
            Key=key,
        )

    async def close(self) -> None:
        await asyncio.to_thread(self.s3.close)
