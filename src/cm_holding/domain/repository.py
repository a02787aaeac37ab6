"""History-flag store Protocol: dependency inversion for testability.

Unit tests inject the in-memory implementation or a mock.
Infrastructure layer provides the Redis implementation.
"""

from typing import Protocol

from src.cm_common.enums import ConsignmentStatus


class HistoryFlagStoreProtocol(Protocol):
    async def has_history(self, holding_id: str) -> bool: ...

    async def mark(self, holding_id: str) -> None: ...

    async def observe(self, holding_id: str, status: ConsignmentStatus) -> bool:
        """Record an observed status; return whether the holding has history."""
        ...
