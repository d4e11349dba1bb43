from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

NotifierEvent = Literal["inquiry_created", "inquiry_updated", "error"]


class WSMessage(BaseModel):
    """Frame pushed to a landlord's open dashboard sockets."""

    event: NotifierEvent
    landlord_id: str
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] = {}
