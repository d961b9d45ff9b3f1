"""Business operations layered over the record-store repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable


class ValidationError(ValueError):
    """A form or business rule rejected the input before anything was written."""

    def __init__(self, messages: str | Iterable[str]) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages = [message for message in messages if message]
        super().__init__("; ".join(self.messages))


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
