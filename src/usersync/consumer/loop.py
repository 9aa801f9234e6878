"""Consume loop: receive a batch, dispatch each message, delete it, re-poll.

Runs as a background task inside the FastAPI lifespan. Blocking boto3 calls
go through ``asyncio.to_thread`` so the event loop stays responsive.

Flow:
    SQS receive (long-poll) -> EventDispatcher per message, in order
    -> delete message -> re-poll immediately
    empty batch / receive error -> wait poll interval -> re-poll
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from usersync.consumer.dispatcher import DispatchOutcome, EventDispatcher
from usersync.core.config import SQSConfig
from usersync.core.protocols import IMessageQueue
from usersync.models.message import QueueMessage

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[None]]


class ConsumeLoop:
    """Single consumer over one queue. Messages are processed strictly in sequence."""

    def __init__(
        self,
        queue: IMessageQueue,
        dispatcher: EventDispatcher,
        config: SQSConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._queue = queue
        self._dispatcher = dispatcher
        self._config = config or SQSConfig()
        self._sleep = sleep
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the loop as a background task and return its handle."""
        if self.running:
            return self._task  # type: ignore[return-value]
        self._running = True
        self._task = asyncio.create_task(self.run(), name="user_event_consumer")
        logger.info("consumer_started", interval_s=self._config.poll_interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("consumer_stopped")

    async def run(self, max_iterations: int | None = None) -> None:
        """Loop until stopped, or for ``max_iterations`` iterations."""
        self._running = True
        iterations = 0
        while self._running:
            if max_iterations is not None and iterations >= max_iterations:
                break
            iterations += 1
            try:
                delay = await self.run_once()
            except Exception as e:
                logger.error("consume_iteration_error", error=str(e))
                delay = self._config.poll_interval_seconds
            if delay > 0:
                await self._sleep(delay)

    async def run_once(self) -> float:
        """One iteration. Returns the delay in seconds before the next receive."""
        try:
            batch = await asyncio.to_thread(
                self._queue.receive_batch,
                self._config.max_messages,
                self._config.wait_seconds,
            )
        except Exception as e:
            logger.error("queue_receive_error", error=str(e))
            return self._config.poll_interval_seconds

        if not batch:
            logger.info("queue_empty", wait_s=self._config.poll_interval_seconds)
            return self._config.poll_interval_seconds

        for message in batch:
            try:
                await self._process(message)
            except Exception as e:
                logger.error("message_processing_error", message_id=message.message_id, error=repr(e))
        return 0.0

    async def _process(self, message: QueueMessage) -> None:
        logger.info("message_received", message_id=message.message_id)
        logger.debug("message_body", message_id=message.message_id, body=message.body)
        try:
            result = await asyncio.to_thread(self._dispatcher.dispatch, message)
        except Exception as e:
            # dispatch is not expected to raise; the message is still deleted
            logger.error("dispatch_error", message_id=message.message_id, error=repr(e))
            result = None
        else:
            logger.info(
                "message_dispatched", message_id=message.message_id,
                outcome=result.outcome, succeeded=result.succeeded,
            )

        if (
            result is not None
            and self._config.retain_failed_messages
            and result.outcome == DispatchOutcome.FAILED
        ):
            logger.warning(
                "message_retained", message_id=message.message_id,
                operation=result.operation, error=result.error,
            )
            return

        try:
            await asyncio.to_thread(self._queue.delete_message, message.receipt_handle)
        except Exception as e:
            logger.warning("queue_delete_error", message_id=message.message_id, error=str(e))
