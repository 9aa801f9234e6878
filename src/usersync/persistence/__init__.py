"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from usersync.core.config import AppSettings
from usersync.messaging.sqs_backend import SQSMessageQueue
from usersync.persistence.dynamodb_backend import DynamoDBUserStore


def create_persistence(settings: AppSettings | None = None):
    """Create wired-up store and queue backends from application settings.

    Returns:
        Tuple of (user_store, message_queue).
    """
    if settings is None:
        settings = AppSettings()

    user_store = DynamoDBUserStore(
        table_name=settings.dynamodb.full_table_name,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    message_queue = SQSMessageQueue(
        queue_url=settings.sqs.queue_url,
        region=settings.sqs.region,
        endpoint_url=settings.sqs.endpoint_url,
    )

    return user_store, message_queue
