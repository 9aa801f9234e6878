"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from usersync.api.routes import consumer, health
from usersync.consumer.dispatcher import EventDispatcher
from usersync.consumer.loop import ConsumeLoop
from usersync.core.config import AppSettings
from usersync.core.logging import configure_logging
from usersync.core.protocols import IMessageQueue, IUserStore
from usersync.persistence import create_persistence
from usersync.services.query_service import UserQueryService

logger = structlog.get_logger()


def create_app(
    settings: AppSettings | None = None,
    *,
    store: IUserStore | None = None,
    queue: IMessageQueue | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``store`` and ``queue`` override the DynamoDB/SQS backends built from
    settings; tests pass in-memory fakes.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Wire backends and services, run the consume loop for the app's lifetime."""
        app_settings = settings or AppSettings()
        configure_logging(app_settings.log_level)

        user_store, message_queue = store, queue
        if user_store is None or message_queue is None:
            default_store, default_queue = create_persistence(app_settings)
            user_store = user_store or default_store
            message_queue = message_queue or default_queue

        loop = ConsumeLoop(message_queue, EventDispatcher(user_store), app_settings.sqs)
        app.state.settings = app_settings
        app.state.query_service = UserQueryService(
            user_store, email_dob_index=app_settings.dynamodb.email_dob_index,
        )
        app.state.consumer = loop

        if app_settings.consumer.enabled:
            loop.start()
        else:
            logger.info("consumer_disabled")
        try:
            yield
        finally:
            await loop.stop()

    app = FastAPI(
        title="UserSync Consumer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(consumer.router, prefix="/consumer")
    return app
