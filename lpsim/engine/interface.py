"""Pool engine interface consumed by the simulation driver."""

from __future__ import annotations

import abc

from lpsim.common.models import BalanceDelta, PoolKey, Slot0, SwapParams, SwapSettings


class PoolEngine(abc.ABC):
    """Capability surface of a concentrated-liquidity pool engine.

    Every mutating call is atomic: it either applies fully or raises an
    ``EngineRejection`` and leaves state untouched.
    """

    @property
    @abc.abstractmethod
    def address(self) -> str:
        """Account holding the pool reserves."""
        raise NotImplementedError

    @abc.abstractmethod
    def initialize(self, key: PoolKey, sqrt_price_x96: int) -> int:
        """Create the pool at ``sqrt_price_x96`` and return its starting tick."""
        raise NotImplementedError

    @abc.abstractmethod
    def mint(
        self,
        key: PoolKey,
        tick_lower: int,
        tick_upper: int,
        liquidity: int,
        amount0_max: int,
        amount1_max: int,
        recipient: str,
        deadline: int,
    ) -> int:
        """Add a position owned by ``recipient`` and return its id."""
        raise NotImplementedError

    @abc.abstractmethod
    def swap(self, key: PoolKey, params: SwapParams, settings: SwapSettings, sender: str) -> BalanceDelta:
        raise NotImplementedError

    @abc.abstractmethod
    def get_slot0(self, key: PoolKey) -> Slot0:
        raise NotImplementedError

    @abc.abstractmethod
    def balance_of(self, account: str, currency: str) -> int:
        raise NotImplementedError

    def fund(self, account: str, currency: str, amount: int) -> bool:
        """Credit ``amount`` of test tokens to ``account``.

        Returns False when the engine cannot mint balances (accounts are then
        expected to be funded externally).
        """
        return False


__all__ = ["PoolEngine"]
