#!/usr/bin/env python3
"""
Tick Math — Exact Tick ↔ Price Conversion
==========================================

Converts V3 tick indices into human-readable prices with arbitrary-precision
decimal arithmetic. Binary floating point is never used: 1.0001^tick at the
outer ticks (±887272) spans roughly 1e-39 … 1e38 and floats lose the low
digits there and diverge across platforms.

FORMULA SOURCES:
──────────────────────────────────────────────
1. Uniswap V3 Core Whitepaper §6.1 — Tick-Indexed Concentrated Liquidity
   https://uniswap.org/whitepaper-v3.pdf
   p(i) = 1.0001^i

2. Uniswap V3 Docs — decimals adjustment
   https://docs.uniswap.org/sdk/v3/guides/background
   human price = 1.0001^i × 10^(decimals0 − decimals1)

Rounding:
  Results are quantized to a fixed number of fractional digits (6 by default)
  with ROUND_HALF_UP (half away from zero for positive prices). The rounding
  is monotonic, so for tick_lower <= tick_upper the rounded lower bound can
  never exceed the rounded upper bound.

Token order:
  Prices are token0 quoted in token1, in the order the source reports the
  tokens. Depending on which token sorts first this can be the reciprocal of
  the price a user expects. Nothing here guesses the intended orientation;
  pass ``invert=True`` to quote token1 in token0 instead.
"""

from decimal import Context, Decimal, ROUND_HALF_UP
from typing import List, Optional

from lp_lens.central_config import config
from lp_lens.models import PriceRange, RangeSuggestion

# ── Named Constants ──────────────────────────────────────────────────────

# TickMath.MIN_TICK / MAX_TICK
# Ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/TickMath.sol
MIN_TICK = -887272
MAX_TICK = 887272

TICK_BASE = Decimal("1.0001")
PRICE_DECIMALS = config.engine.PRICE_DECIMALS

# Enough digits for 1.0001^887272 × 10^255 with fractional places to spare
_CTX = Context(prec=320, rounding=ROUND_HALF_UP, Emin=-999999, Emax=999999)

# Market-making bands around a spot price: (label, half-width %)
RANGE_STRATEGIES = (
    ("Aggressive", 10),
    ("Balanced", 20),
    ("Conservative", 50),
)


# ── Validation ───────────────────────────────────────────────────────────


def _check_tick(tick: int) -> None:
    if isinstance(tick, bool) or not isinstance(tick, int):
        raise TypeError(f"tick must be an int, got {type(tick).__name__}")
    if not MIN_TICK <= tick <= MAX_TICK:
        raise ValueError(f"tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise TypeError(f"decimals must be an int, got {type(decimals).__name__}")
    if not 0 <= decimals <= 255:
        raise ValueError(f"decimals {decimals} outside [0, 255]")


def _quantize(value: Decimal, places: int) -> str:
    return format(value.quantize(Decimal(1).scaleb(-places), context=_CTX), "f")


# ── Tick → Price ─────────────────────────────────────────────────────────


def raw_tick_price(tick: int, decimals0: int, decimals1: int) -> Decimal:
    """Unrounded 1.0001^tick × 10^(decimals0 − decimals1)."""
    _check_tick(tick)
    _check_decimals(decimals0)
    _check_decimals(decimals1)
    power = _CTX.power(TICK_BASE, tick)
    return _CTX.multiply(power, Decimal(1).scaleb(decimals0 - decimals1, context=_CTX))


def tick_to_price(
    tick: int, decimals0: int, decimals1: int, places: int = PRICE_DECIMALS
) -> str:
    """
    Price of token0 in token1 at ``tick``, as a fixed-point decimal string.

    >>> tick_to_price(0, 18, 18)
    '1.000000'
    """
    return _quantize(raw_tick_price(tick, decimals0, decimals1), places)


def price_range(
    tick_lower: int,
    tick_upper: int,
    decimals0: int,
    decimals1: int,
    invert: bool = False,
    places: int = PRICE_DECIMALS,
) -> PriceRange:
    """
    Price bounds of a position. Shared by the indexed and on-chain paths so
    both round identically.

    With ``invert=True`` prices are token1 quoted in token0: each bound is
    taken at the negated tick with the decimals swapped, and the bounds swap
    places so ``min_price <= max_price`` still holds.

    Raises:
        ValueError: ticks out of bounds or tick_lower > tick_upper.
    """
    if tick_lower > tick_upper:
        raise ValueError(f"tick_lower {tick_lower} > tick_upper {tick_upper}")
    if invert:
        return PriceRange(
            min_price=tick_to_price(-tick_upper, decimals1, decimals0, places),
            max_price=tick_to_price(-tick_lower, decimals1, decimals0, places),
        )
    return PriceRange(
        min_price=tick_to_price(tick_lower, decimals0, decimals1, places),
        max_price=tick_to_price(tick_upper, decimals0, decimals1, places),
    )


def is_in_range(current_tick: int, tick_lower: int, tick_upper: int) -> bool:
    """Active iff tick_lower <= current_tick <= tick_upper (both bounds inclusive)."""
    return tick_lower <= current_tick <= tick_upper


# ── Token Amounts ────────────────────────────────────────────────────────


def format_units(raw: int, decimals: int) -> str:
    """
    Format a smallest-unit integer amount at the token's native precision.

    >>> format_units(1234500, 6)
    '1.234500'
    """
    _check_decimals(decimals)
    if decimals == 0:
        return str(int(raw))
    return _quantize(_CTX.scaleb(Decimal(int(raw)), -decimals), decimals)


# ── Range Suggestions ────────────────────────────────────────────────────


def suggest_ranges(price: Optional[Decimal]) -> List[RangeSuggestion]:
    """
    Symmetric market-making bands around a spot price.

    Aggressive ±10% (high fee share, leaves range quickly), Balanced ±20%,
    Conservative ±50% (long-term hold). Missing or non-positive price → [].
    """
    if price is None:
        return []
    price = Decimal(price)
    if not price.is_finite() or price <= 0:
        return []

    # At least six significant digits for sub-cent tokens
    places = max(PRICE_DECIMALS, -price.adjusted() + 5)
    suggestions = []
    for label, width in RANGE_STRATEGIES:
        factor = Decimal(width) / 100
        suggestions.append(
            RangeSuggestion(
                label=label,
                width_pct=width,
                min_price=_quantize(price * (1 - factor), places),
                max_price=_quantize(price * (1 + factor), places),
            )
        )
    return suggestions
