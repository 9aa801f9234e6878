"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class DynamoDBConfig(BaseSettings):
    """DynamoDB user table configuration."""

    model_config = {"env_prefix": "USERSYNC_DYNAMO_"}

    table_name: str = "users"
    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    email_dob_index: str = "email-dob-index"

    @property
    def full_table_name(self) -> str:
        return f"{self.table_name}{self.table_suffix}"


class SQSConfig(BaseSettings):
    """SQS user-event queue configuration."""

    model_config = {"env_prefix": "USERSYNC_SQS_"}

    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    queue_url: str = ""
    max_messages: int = 10
    wait_seconds: int = 20
    poll_interval_seconds: float = 10.0
    retain_failed_messages: bool = False


class ConsumerConfig(BaseSettings):
    """Consume loop lifecycle configuration."""

    model_config = {"env_prefix": "USERSYNC_CONSUMER_"}

    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "USERSYNC_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    dynamodb: DynamoDBConfig = DynamoDBConfig()
    sqs: SQSConfig = SQSConfig()
    consumer: ConsumerConfig = ConsumerConfig()
