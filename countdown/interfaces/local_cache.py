"""
Local cache interface.

A small durable key-value store holding JSON values: the legacy milestone
array, the theme preference and the migration ledger.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ILocalCache(ABC):
    """Interface for the device-local key-value cache."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get the decoded JSON value stored under key, or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""
        pass
