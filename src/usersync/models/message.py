"""Queue message model shared by the queue backends and the consume loop."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class QueueMessage(BaseModel):
    """A delivered-but-unacknowledged queue message."""

    body: Optional[str] = None
    receipt_handle: str
    message_id: str = ""
