"""ItemService abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from alexa_gate.models import ItemState


class ItemService(ABC):
    """Interface for the backend holding the items directives act on."""

    @abstractmethod
    async def get_item(self, token: str | None, name: str) -> ItemState:
        """Return the current state of an item."""
        ...

    @abstractmethod
    async def post_item_command(self, token: str | None, name: str, command: str) -> None:
        """Send a command to an item."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the service is reachable."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...
