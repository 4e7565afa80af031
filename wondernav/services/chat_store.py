"""
Chat Store Module

Persists generated itineraries in DynamoDB, one item per distinct input.
The table's only key is ``input`` (S, HASH), so writing the same input again
replaces the earlier item.
"""

from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from wondernav.errors import StorageError
from wondernav.models.schemas import ChatRecord
from wondernav.utils.util import logger


def create_dynamodb(region: str, endpoint_url: Optional[str] = None):
    return boto3.client(
        "dynamodb",
        region_name=region,
        endpoint_url=endpoint_url,
        config=Config(retries={"total_max_attempts": 1, "mode": "standard"}),
    )


class DynamoChatStore:
    """Reads and writes ``ChatRecord`` items in the chats table."""

    def __init__(self, dynamodb, table_name: str):
        self.dynamodb = dynamodb
        self.table_name = table_name

    def put_record(self, record: ChatRecord) -> None:
        """
        Write ``record``, overwriting any item with the same input.

        Raises:
            StorageError: the write was rejected or never reached DynamoDB
        """
        try:
            self.dynamodb.put_item(TableName=self.table_name, Item=record.to_item())
        except (ClientError, BotoCoreError) as e:
            logger.error("DynamoDB put_item on %s failed: %s", self.table_name, e)
            raise StorageError(f"Could not save chat: {e}") from e
        logger.info("Saved chat to %s (%d chars)", self.table_name, len(record.output))

    def get_record(self, input_text: str) -> Optional[ChatRecord]:
        """
        Fetch the stored record for ``input_text``.

        Returns:
            The record, or None when there is no item or the item has no output
        """
        try:
            resp = self.dynamodb.get_item(
                TableName=self.table_name,
                Key={"input": {"S": input_text}},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("DynamoDB get_item on %s failed: %s", self.table_name, e)
            raise StorageError(f"Could not read chat: {e}") from e

        item = resp.get("Item")
        if not item or "S" not in item.get("output", {}):
            return None
        return ChatRecord.from_item(item)
