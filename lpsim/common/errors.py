"""Error taxonomy shared by the simulator, the engines and the CLI."""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from lpsim.common.models import SimulationRecord


class SimulationError(Exception):
    """Base class for every error raised by lpsim."""


class ConfigurationError(SimulationError):
    """Degenerate scenario detected before the engine is touched."""


class SimulationStateError(SimulationError):
    """A driver operation was called out of protocol order."""


class EngineRejection(SimulationError):
    """The pool engine refused an operation.

    ``reason`` is a short stable identifier used for metrics labels.
    """

    reason = "engine_rejection"


class PoolAlreadyInitialized(EngineRejection):
    reason = "pool_already_initialized"


class PoolNotInitialized(EngineRejection):
    reason = "pool_not_initialized"


class InvalidSqrtPrice(EngineRejection):
    reason = "invalid_sqrt_price"


class InvalidTickRange(EngineRejection):
    reason = "invalid_tick_range"


class CannotMintZeroLiquidity(EngineRejection):
    reason = "zero_liquidity"


class MaximumAmountExceeded(EngineRejection):
    reason = "maximum_amount_exceeded"


class DeadlineExpired(EngineRejection):
    reason = "deadline_expired"


class SwapAmountCannotBeZero(EngineRejection):
    reason = "swap_amount_zero"


class PriceLimitAlreadyExceeded(EngineRejection):
    reason = "price_limit_already_exceeded"


class PriceLimitOutOfBounds(EngineRejection):
    reason = "price_limit_out_of_bounds"


class InsufficientBalance(EngineRejection):
    reason = "insufficient_balance"


class ScenarioAborted(SimulationError):
    """A scenario stopped early; records emitted before the failure stay valid."""

    def __init__(self, records: List["SimulationRecord"], error: EngineRejection, iteration: Optional[int] = None):
        where = f" at iteration {iteration}" if iteration is not None else ""
        super().__init__(f"scenario aborted{where}: {error.reason}: {error}")
        self.records = list(records)
        self.error = error
        self.iteration = iteration


__all__ = [
    "SimulationError",
    "ConfigurationError",
    "SimulationStateError",
    "EngineRejection",
    "PoolAlreadyInitialized",
    "PoolNotInitialized",
    "InvalidSqrtPrice",
    "InvalidTickRange",
    "CannotMintZeroLiquidity",
    "MaximumAmountExceeded",
    "DeadlineExpired",
    "SwapAmountCannotBeZero",
    "PriceLimitAlreadyExceeded",
    "PriceLimitOutOfBounds",
    "InsufficientBalance",
    "ScenarioAborted",
]
