"""In-memory pool engine for tests and local scenario runs.

Holds pool state, a token ledger and a claims ledger in plain dicts. Swaps walk
initialized ticks with the integer swap-step math, so prices and amounts match
the on-chain engine to the wei for the single-position scenarios this project
runs. Fee growth and protocol fees are not tracked; LP fees simply stay in the
reserves.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from lpsim.common.errors import (
    CannotMintZeroLiquidity,
    DeadlineExpired,
    InsufficientBalance,
    InvalidSqrtPrice,
    InvalidTickRange,
    MaximumAmountExceeded,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    PriceLimitAlreadyExceeded,
    PriceLimitOutOfBounds,
    SwapAmountCannotBeZero,
)
from lpsim.common.models import BalanceDelta, PoolKey, Position, Slot0, SwapParams, SwapSettings
from lpsim.engine.interface import PoolEngine
from lpsim.simulator.liquidity import get_amounts_for_liquidity
from lpsim.simulator.swap_math import compute_swap_step
from lpsim.simulator.tick_math import (
    MAX_SQRT_PRICE,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MIN_TICK,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)

ENGINE_ADDRESS = "0x" + "0" * 36 + "4444"

log = logging.getLogger(__name__)


@dataclass
class _PoolState:
    sqrt_price_x96: int
    tick: int
    lp_fee: int
    tick_spacing: int
    liquidity: int = 0
    liquidity_net: Dict[int, int] = field(default_factory=dict)
    liquidity_gross: Dict[int, int] = field(default_factory=dict)
    initialized_ticks: List[int] = field(default_factory=list)

    def next_initialized_tick(self, tick: int, lte: bool) -> Tuple[int, bool]:
        """Closest initialized tick at or below ``tick`` (lte) or strictly above it."""
        if lte:
            idx = bisect.bisect_right(self.initialized_ticks, tick) - 1
            if idx >= 0:
                return self.initialized_ticks[idx], True
            return MIN_TICK, False
        idx = bisect.bisect_right(self.initialized_ticks, tick)
        if idx < len(self.initialized_ticks):
            return self.initialized_ticks[idx], True
        return MAX_TICK, False

    def update_tick(self, tick: int, liquidity_delta: int, upper: bool) -> None:
        if tick not in self.liquidity_gross:
            bisect.insort(self.initialized_ticks, tick)
            self.liquidity_gross[tick] = 0
            self.liquidity_net[tick] = 0
        self.liquidity_gross[tick] += liquidity_delta
        self.liquidity_net[tick] += -liquidity_delta if upper else liquidity_delta


class InMemoryPoolEngine(PoolEngine):
    """Single-process stand-in for the pool manager."""

    def __init__(self, address: str = ENGINE_ADDRESS, timestamp: int = 0) -> None:
        self._address = address.lower()
        self.timestamp = timestamp
        self._pools: Dict[str, _PoolState] = {}
        self._balances: Dict[Tuple[str, str], int] = {}
        self._claims: Dict[Tuple[str, str], int] = {}
        self.positions: Dict[int, Position] = {}
        self._next_position_id = 1

    @property
    def address(self) -> str:
        return self._address

    # Ledger --------------------------------------------------------------
    def deal(self, account: str, currency: str, amount: int) -> None:
        """Set ``account``'s token balance, replacing whatever it held."""
        if amount < 0:
            raise ValueError("balance must be non-negative")
        self._balances[(account.lower(), currency.lower())] = amount

    def balance_of(self, account: str, currency: str) -> int:
        return self._balances.get((account.lower(), currency.lower()), 0)

    def fund(self, account: str, currency: str, amount: int) -> bool:
        self.deal(account, currency, self.balance_of(account, currency) + amount)
        return True

    def claims_of(self, account: str, currency: str) -> int:
        return self._claims.get((account.lower(), currency.lower()), 0)

    def warp(self, timestamp: int) -> None:
        self.timestamp = timestamp

    # Pool lifecycle ------------------------------------------------------
    def _pool(self, key: PoolKey) -> _PoolState:
        pool = self._pools.get(key.to_id())
        if pool is None:
            raise PoolNotInitialized(f"pool {key.label()} not initialized")
        return pool

    def initialize(self, key: PoolKey, sqrt_price_x96: int) -> int:
        pool_id = key.to_id()
        if pool_id in self._pools:
            raise PoolAlreadyInitialized(f"pool {key.label()} already initialized")
        if sqrt_price_x96 < MIN_SQRT_PRICE or sqrt_price_x96 >= MAX_SQRT_PRICE:
            raise InvalidSqrtPrice(f"sqrt price {sqrt_price_x96} outside [{MIN_SQRT_PRICE}, {MAX_SQRT_PRICE})")
        tick = get_tick_at_sqrt_price(sqrt_price_x96)
        self._pools[pool_id] = _PoolState(
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            lp_fee=key.fee,
            tick_spacing=key.tick_spacing,
        )
        log.info("Initialized pool %s at sqrtPriceX96=%d tick=%d", pool_id[:10], sqrt_price_x96, tick)
        return tick

    def get_slot0(self, key: PoolKey) -> Slot0:
        pool = self._pool(key)
        return Slot0(sqrt_price_x96=pool.sqrt_price_x96, tick=pool.tick, lp_fee=pool.lp_fee)

    def get_liquidity(self, key: PoolKey) -> int:
        return self._pool(key).liquidity

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
        pool = self._pool(key)
        if deadline < self.timestamp:
            raise DeadlineExpired(f"deadline {deadline} before block time {self.timestamp}")
        if tick_lower >= tick_upper or tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise InvalidTickRange(f"invalid range [{tick_lower}, {tick_upper})")
        if tick_lower % key.tick_spacing or tick_upper % key.tick_spacing:
            raise InvalidTickRange(f"range [{tick_lower}, {tick_upper}) not aligned to spacing {key.tick_spacing}")
        if liquidity <= 0:
            raise CannotMintZeroLiquidity("liquidity must be positive")

        amount0, amount1 = get_amounts_for_liquidity(
            pool.sqrt_price_x96,
            get_sqrt_price_at_tick(tick_lower),
            get_sqrt_price_at_tick(tick_upper),
            liquidity,
            round_up=True,
        )
        if amount0 > amount0_max or amount1 > amount1_max:
            raise MaximumAmountExceeded(
                f"mint needs ({amount0}, {amount1}) above maximum ({amount0_max}, {amount1_max})"
            )
        self._check_balance(recipient, key.currency0, amount0)
        self._check_balance(recipient, key.currency1, amount1)

        self._transfer(recipient, self._address, key.currency0, amount0)
        self._transfer(recipient, self._address, key.currency1, amount1)
        pool.update_tick(tick_lower, liquidity, upper=False)
        pool.update_tick(tick_upper, liquidity, upper=True)
        if tick_lower <= pool.tick < tick_upper:
            pool.liquidity += liquidity

        position = Position(
            position_id=self._next_position_id,
            owner=recipient,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            liquidity=liquidity,
        )
        self.positions[position.position_id] = position
        self._next_position_id += 1
        log.info(
            "Minted position #%d [%d, %d) L=%d for %s paying (%d, %d)",
            position.position_id,
            tick_lower,
            tick_upper,
            liquidity,
            recipient,
            amount0,
            amount1,
        )
        return position.position_id

    # Swaps ---------------------------------------------------------------
    def swap(self, key: PoolKey, params: SwapParams, settings: SwapSettings, sender: str) -> BalanceDelta:
        pool = self._pool(key)
        self._check_limit(pool, params)

        zero_for_one = params.zero_for_one
        limit = params.sqrt_price_limit_x96
        exact_in = params.amount_specified > 0
        remaining = params.amount_specified
        calculated = 0
        sqrt_price = pool.sqrt_price_x96
        tick = pool.tick
        liquidity = pool.liquidity

        while remaining != 0 and sqrt_price != limit:
            step_start = sqrt_price
            tick_next, initialized = pool.next_initialized_tick(tick, zero_for_one)
            sqrt_next = get_sqrt_price_at_tick(tick_next)
            if zero_for_one:
                target = limit if sqrt_next < limit else sqrt_next
            else:
                target = limit if sqrt_next > limit else sqrt_next

            step = compute_swap_step(sqrt_price, target, liquidity, remaining, pool.lp_fee)
            sqrt_price = step.sqrt_price_next_x96
            if exact_in:
                remaining -= step.amount_in + step.fee_amount
                calculated -= step.amount_out
            else:
                remaining += step.amount_out
                calculated += step.amount_in + step.fee_amount

            if sqrt_price == sqrt_next:
                if initialized:
                    net = pool.liquidity_net[tick_next]
                    liquidity += -net if zero_for_one else net
                tick = tick_next - 1 if zero_for_one else tick_next
            elif sqrt_price != step_start:
                tick = get_tick_at_sqrt_price(sqrt_price)

        # pool-side deltas: positive flows into the pool
        if zero_for_one == exact_in:
            pool_delta0, pool_delta1 = params.amount_specified - remaining, calculated
        else:
            pool_delta0, pool_delta1 = calculated, params.amount_specified - remaining

        self._settle(key, sender, settings, pool_delta0, pool_delta1)
        pool.sqrt_price_x96 = sqrt_price
        pool.tick = tick
        pool.liquidity = liquidity
        log.debug(
            "Swap %s zero_for_one=%s deltas=(%d, %d) sqrtPriceX96=%d tick=%d",
            key.label(),
            zero_for_one,
            pool_delta0,
            pool_delta1,
            sqrt_price,
            tick,
        )
        return BalanceDelta(amount0=-pool_delta0, amount1=-pool_delta1)

    def _check_limit(self, pool: _PoolState, params: SwapParams) -> None:
        if params.amount_specified == 0:
            raise SwapAmountCannotBeZero("amount_specified must be non-zero")
        limit = params.sqrt_price_limit_x96
        if params.zero_for_one:
            if limit >= pool.sqrt_price_x96:
                raise PriceLimitAlreadyExceeded(f"limit {limit} not below price {pool.sqrt_price_x96}")
            if limit <= MIN_SQRT_PRICE:
                raise PriceLimitOutOfBounds(f"limit {limit} at or below MIN_SQRT_PRICE")
        else:
            if limit <= pool.sqrt_price_x96:
                raise PriceLimitAlreadyExceeded(f"limit {limit} not above price {pool.sqrt_price_x96}")
            if limit >= MAX_SQRT_PRICE:
                raise PriceLimitOutOfBounds(f"limit {limit} at or above MAX_SQRT_PRICE")

    def _settle(self, key: PoolKey, sender: str, settings: SwapSettings, delta0: int, delta1: int) -> None:
        """Validate every leg first, then move tokens, so a failed swap changes nothing."""
        legs = [(key.currency0, delta0), (key.currency1, delta1)]
        for currency, delta in legs:
            if delta > 0:
                if settings.settle_using_burn:
                    if self.claims_of(sender, currency) < delta:
                        raise InsufficientBalance(f"{sender} claims of {currency} below {delta}")
                else:
                    self._check_balance(sender, currency, delta)
            elif delta < 0 and not settings.take_claims:
                self._check_balance(self._address, currency, -delta)

        for currency, delta in legs:
            if delta > 0:
                if settings.settle_using_burn:
                    self._claims[(sender.lower(), currency.lower())] -= delta
                else:
                    self._transfer(sender, self._address, currency, delta)
            elif delta < 0:
                if settings.take_claims:
                    slot = (sender.lower(), currency.lower())
                    self._claims[slot] = self._claims.get(slot, 0) - delta
                else:
                    self._transfer(self._address, sender, currency, -delta)

    def _check_balance(self, account: str, currency: str, amount: int) -> None:
        held = self.balance_of(account, currency)
        if held < amount:
            raise InsufficientBalance(f"{account} holds {held} of {currency}, needs {amount}")

    def _transfer(self, src: str, dst: str, currency: str, amount: int) -> None:
        if amount == 0:
            return
        self._balances[(src.lower(), currency.lower())] = self.balance_of(src, currency) - amount
        self._balances[(dst.lower(), currency.lower())] = self.balance_of(dst, currency) + amount


__all__ = ["InMemoryPoolEngine", "ENGINE_ADDRESS"]
