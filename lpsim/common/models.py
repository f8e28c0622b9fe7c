"""Shared, strongly validated data models for lpsim.

These Pydantic models define the contracts between the simulator, the pool
engines and the telemetry sinks. Validation is strict and fails fast so a bad
scenario never reaches the engine.
"""

from __future__ import annotations

from typing import Optional, Tuple

from eth_abi import encode
from eth_utils import keccak
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ZERO_ADDRESS = "0x" + "0" * 40
DEFAULT_PROVIDER = "0x" + "0" * 38 + "a1"
DEFAULT_INVESTOR = "0x" + "0" * 38 + "b2"
MAX_UINT256 = (1 << 256) - 1


def _is_hex_address(value: str) -> bool:
    """Return True if the string looks like a 20-byte hex address."""
    if not isinstance(value, str):
        return False
    if not value.startswith("0x") or len(value) != 42:
        return False
    try:
        int(value[2:], 16)
    except ValueError:
        return False
    return True


def _checked_address(value: str, field: str) -> str:
    if not _is_hex_address(value):
        raise ValueError(f"{field} must be 0x-prefixed 40 hex chars")
    return value.lower()


class PoolKey(BaseModel):
    """Immutable pool identity."""

    model_config = ConfigDict(frozen=True)

    currency0: str = Field(..., description="Lower-sorting token address")
    currency1: str = Field(..., description="Higher-sorting token address")
    fee: int = Field(..., ge=0, lt=1_000_000, description="LP fee in pips (hundredths of a bip)")
    tick_spacing: int = Field(..., ge=1, le=32767)
    hooks: str = Field(ZERO_ADDRESS, description="Hook contract address, zero for none")

    @field_validator("currency0", "currency1", "hooks")
    @classmethod
    def _valid_address(cls, v: str, info) -> str:
        return _checked_address(v, info.field_name)

    @model_validator(mode="after")
    def _canonical_order(self) -> "PoolKey":
        if int(self.currency0, 16) >= int(self.currency1, 16):
            raise ValueError("currency0 must sort strictly below currency1")
        return self

    def to_id(self) -> str:
        """Pool id: keccak256 of the ABI-encoded key."""
        payload = encode(
            ["address", "address", "uint24", "int24", "address"],
            [self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks],
        )
        return "0x" + keccak(payload).hex()

    def label(self) -> str:
        return f"{self.currency0[:8]}/{self.currency1[:8]}@{self.fee}"

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"PoolKey({self.label()}, spacing={self.tick_spacing})"


class Position(BaseModel):
    """Liquidity position minted by the provider; never mutated afterwards."""

    model_config = ConfigDict(frozen=True)

    position_id: int = Field(..., ge=1)
    owner: str
    tick_lower: int
    tick_upper: int
    liquidity: int = Field(..., gt=0)

    @field_validator("owner")
    @classmethod
    def _owner_addr(cls, v: str) -> str:
        return _checked_address(v, "owner")

    @model_validator(mode="after")
    def _ordered_ticks(self) -> "Position":
        if self.tick_lower >= self.tick_upper:
            raise ValueError("tick_lower must be below tick_upper")
        return self

    def __repr__(self) -> str:  # pragma: no cover
        return f"Position(#{self.position_id} [{self.tick_lower}, {self.tick_upper}) L={self.liquidity})"


class SwapParams(BaseModel):
    """Swap request. Positive ``amount_specified`` is exact input, negative exact output."""

    model_config = ConfigDict(frozen=True)

    zero_for_one: bool
    amount_specified: int
    sqrt_price_limit_x96: int = Field(..., ge=0)


class SwapSettings(BaseModel):
    """Settlement flags of the swap router."""

    model_config = ConfigDict(frozen=True)

    take_claims: bool = False
    settle_using_burn: bool = False


class BalanceDelta(BaseModel):
    """Token deltas seen by the swapper: negative paid in, positive received."""

    model_config = ConfigDict(frozen=True)

    amount0: int
    amount1: int


class Slot0(BaseModel):
    model_config = ConfigDict(frozen=True)

    sqrt_price_x96: int = Field(..., ge=0)
    tick: int
    lp_fee: int = Field(..., ge=0)


class SimulationRecord(BaseModel):
    """One telemetry row; the raw fields are what the strings were rendered from."""

    model_config = ConfigDict(frozen=True)

    iteration: int = Field(..., ge=0)
    price: str
    balance0: str
    balance1: str
    sqrt_price_x96: Optional[int] = None
    tick: Optional[int] = None
    raw_balance0: Optional[int] = None
    raw_balance1: Optional[int] = None

    def line(self) -> str:
        from lpsim.simulator.telemetry import format_record_line

        return format_record_line(self.iteration, self.price, self.balance0, self.balance1)

    def __repr__(self) -> str:  # pragma: no cover
        return f"SimulationRecord({self.line()})"


class SimulationConfig(BaseModel):
    """Everything one scenario run needs; built once and read-only afterwards."""

    model_config = ConfigDict(frozen=True)

    name: str = "default"
    pool_key: PoolKey
    initial_sqrt_price_x96: int = Field(..., gt=0)
    amount0_desired: int = Field(..., ge=0)
    amount1_desired: int = Field(..., ge=0)
    sqrt_price_lower_x96: int = Field(0, ge=0, description="0 selects the minimum usable tick")
    sqrt_price_upper_x96: int = Field(0, ge=0, description="0 selects the maximum usable tick")
    swap_count: int = Field(..., ge=0)
    swap: SwapParams
    swap_settings: SwapSettings = Field(default_factory=SwapSettings)
    provider: str = DEFAULT_PROVIDER
    investor: str = DEFAULT_INVESTOR
    reserve_account: Optional[str] = Field(None, description="Account whose balances are reported; engine when unset")
    decimals0: int = Field(18, ge=0, le=36)
    decimals1: int = Field(18, ge=0, le=36)
    deadline: int = Field(MAX_UINT256, ge=0)
    mint_slippage: int = Field(1, ge=0, description="Wei allowed above the desired amounts at mint")
    provider_funding: Optional[Tuple[int, int]] = None
    investor_funding: Optional[Tuple[int, int]] = None

    @field_validator("provider", "investor")
    @classmethod
    def _actor_addr(cls, v: str, info) -> str:
        return _checked_address(v, info.field_name)

    @field_validator("reserve_account")
    @classmethod
    def _reserve_addr(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _checked_address(v, "reserve_account")

    @field_validator("provider_funding", "investor_funding")
    @classmethod
    def _non_negative_funding(cls, v: Optional[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
        if v is not None and (v[0] < 0 or v[1] < 0):
            raise ValueError("funding amounts must be non-negative")
        return v

    @model_validator(mode="after")
    def _swap_amount(self) -> "SimulationConfig":
        if self.swap_count > 0 and self.swap.amount_specified == 0:
            raise ValueError("swap amount_specified must be non-zero")
        return self

    def mint_maximums(self) -> Tuple[int, int]:
        return self.amount0_desired + self.mint_slippage, self.amount1_desired + self.mint_slippage

    def funding_for_provider(self) -> Tuple[int, int]:
        return self.provider_funding if self.provider_funding is not None else self.mint_maximums()

    def funding_for_investor(self) -> Tuple[int, int]:
        """Default funding covers every exact-input swap in the input token."""
        if self.investor_funding is not None:
            return self.investor_funding
        total = abs(self.swap.amount_specified) * self.swap_count
        if self.swap.amount_specified < 0:
            # exact output: input size is unknown up front
            total = MAX_UINT256 >> 128
        return (total, 0) if self.swap.zero_for_one else (0, total)

    def __repr__(self) -> str:  # pragma: no cover
        return f"SimulationConfig({self.name}, swaps={self.swap_count})"


__all__ = [
    "ZERO_ADDRESS",
    "DEFAULT_PROVIDER",
    "DEFAULT_INVESTOR",
    "MAX_UINT256",
    "PoolKey",
    "Position",
    "SwapParams",
    "SwapSettings",
    "BalanceDelta",
    "Slot0",
    "SimulationRecord",
    "SimulationConfig",
]
