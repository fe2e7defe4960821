from __future__ import annotations

from collections import deque
from typing import Iterator

MESSAGE_LOG_LIMIT = 5


class MessageLog:
    """Most recent player-facing messages, oldest first."""

    def __init__(self, max_messages: int = MESSAGE_LOG_LIMIT) -> None:
        if max_messages <= 0:
            raise ValueError("max_messages must be > 0")
        self.max_messages = max_messages
        self._messages: deque[str] = deque(maxlen=max_messages)

    def add(self, message: str) -> None:
        self._messages.append(message)

    def extend(self, messages: list[str]) -> None:
        for message in messages:
            self.add(message)

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> list[str]:
        return list(self._messages)

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
