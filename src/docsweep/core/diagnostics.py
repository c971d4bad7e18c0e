from __future__ import annotations


class Diagnostics:
    """Collects warning messages in first-seen order, dropping repeats."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self._seen: set[str] = set()

    def warn(self, message: str) -> None:
        if message in self._seen:
            return
        self._seen.add(message)
        self.messages.append(message)

    def __len__(self) -> int:
        return len(self.messages)
