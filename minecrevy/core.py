"""Core server settings."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PlayerCount:
    """The current and maximum number of players."""

    online: int = 0
    max: int = 20

    def is_full(self) -> bool:
        """Return True if the server is at its configured capacity."""
        return self.online >= self.max