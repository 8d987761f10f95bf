"""Venue adapter interface.

An adapter exposes four capabilities. Each takes an ExecutionIntent and a
price snapshot and resolves to a terminal ExecutionResult; adapters are
responsible for bounding their own latency and retries.
"""

from abc import ABC, abstractmethod

from otmo_copier.schemas.execution import ExecutionIntent, ExecutionResult, PriceSnapshot


class VenueAdapter(ABC):
    venue: str

    @abstractmethod
    async def open_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        """Open a new position or add to an existing one."""

    @abstractmethod
    async def close_position(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        """Reduce or fully close a position."""

    @abstractmethod
    async def update_tp_sl(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        ...

    @abstractmethod
    async def cancel_order(self, intent: ExecutionIntent, snapshot: PriceSnapshot) -> ExecutionResult:
        ...
