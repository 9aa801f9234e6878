"""SQS backend implementing IMessageQueue."""

from __future__ import annotations

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from usersync.core.exceptions import QueueError
from usersync.models.message import QueueMessage


class SQSMessageQueue:
    """Production IMessageQueue backed by a single SQS queue."""

    def __init__(self, queue_url: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._queue_url = queue_url
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("sqs", **kwargs)

    @property
    def queue_url(self) -> str:
        return self._queue_url

    def receive_batch(self, max_messages: int = 10, wait_seconds: int = 20) -> list[QueueMessage]:
        """Long-poll for up to ``max_messages`` messages."""
        try:
            resp = self._client.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=max_messages,
                WaitTimeSeconds=wait_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise QueueError(f"SQS receive failed for {self._queue_url!r}: {exc}") from exc
        return [
            QueueMessage(
                body=msg.get("Body"),
                receipt_handle=msg["ReceiptHandle"],
                message_id=msg.get("MessageId", ""),
            )
            for msg in resp.get("Messages", [])
        ]

    def delete_message(self, receipt_handle: str) -> None:
        try:
            self._client.delete_message(QueueUrl=self._queue_url, ReceiptHandle=receipt_handle)
        except (ClientError, BotoCoreError) as exc:
            raise QueueError(f"SQS delete failed for {self._queue_url!r}: {exc}") from exc
