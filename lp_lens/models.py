"""
Engine Records — pools, positions, price ranges
================================================

Immutable records built fresh on every query and discarded after the
response is returned. Nothing here is cached or persisted.

Token order is always the one reported by the source (token0/token1 for
indexed and on-chain data, base/quote for DEXScreener pairs). Prices are
token0 quoted in token1 unless a caller explicitly asks for inversion.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from lp_lens.central_config import config


@dataclass(frozen=True)
class TokenMeta:
    """ERC-20 style token identity. ``decimals`` is None when unreported."""

    address: str
    symbol: str
    decimals: Optional[int] = None


@dataclass(frozen=True)
class PoolSummary:
    """
    One pool as quoted by the market-data aggregator.

    ``platform`` is the DEXScreener ``dexId`` and doubles as the routing key
    to the matching position-indexing endpoint.
    """

    address: str
    platform: str
    network: str
    token0: TokenMeta
    token1: TokenMeta
    price_usd: Optional[Decimal] = None
    volume_24h: Decimal = Decimal(0)
    liquidity_usd: Decimal = Decimal(0)
    labels: Tuple[str, ...] = ()
    url: Optional[str] = None

    def __post_init__(self):
        if self.liquidity_usd < 0:
            raise ValueError(f"liquidity_usd must be >= 0, got {self.liquidity_usd}")
        if self.volume_24h < 0:
            raise ValueError(f"volume_24h must be >= 0, got {self.volume_24h}")

    @property
    def pair(self) -> str:
        return f"{self.token0.symbol}/{self.token1.symbol}"

    @property
    def is_concentrated(self) -> bool:
        return any(label.lower() in config.api.CONCENTRATED_LABELS for label in self.labels)

    @property
    def version(self) -> str:
        return "V3" if self.is_concentrated else "V2"


@dataclass(frozen=True)
class PriceRange:
    """Price bounds as fixed-precision decimal strings."""

    min_price: str
    max_price: str


@dataclass(frozen=True)
class Position:
    """
    A liquidity position normalized against its pool's current tick.

    ``liquidity`` is kept as an integer string to avoid range loss.
    ``collected_fees0/1`` are cumulative counters passed through from the
    source; None when the source does not report them.
    """

    id: str
    owner: Optional[str]
    tick_lower: int
    tick_upper: int
    liquidity: str
    price_range: PriceRange
    in_range: bool
    collected_fees0: Optional[Decimal] = None
    collected_fees1: Optional[Decimal] = None


@dataclass(frozen=True)
class PoolPositions:
    """
    A discovered pool paired with its ranked, classified positions.

    ``token0``/``token1`` are the pool's own token order as reported by the
    indexer, with decimals. Position prices are token0 quoted in token1
    (reversed when inversion was requested). ``pool.token0``/``pool.token1``
    keep the market-data base/quote order, which may differ.
    """

    pool: PoolSummary
    current_tick: Optional[int]
    positions: Tuple[Position, ...] = ()
    token0: Optional[TokenMeta] = None
    token1: Optional[TokenMeta] = None
    fee_tier: Optional[int] = None
    inverted: bool = False

    @property
    def quote_label(self) -> Optional[str]:
        """Unit of the position prices, e.g. "USDT per WBNB"."""
        if self.token0 is None or self.token1 is None:
            return None
        base, quote = (self.token1, self.token0) if self.inverted else (self.token0, self.token1)
        return f"{quote.symbol} per {base.symbol}"


@dataclass(frozen=True)
class PositionFetch:
    """Outcome of one per-pool indexing branch: positions or the error."""

    pool: PoolSummary
    current_tick: Optional[int] = None
    positions: Tuple[Position, ...] = ()
    token0: Optional[TokenMeta] = None
    token1: Optional[TokenMeta] = None
    fee_tier: Optional[int] = None
    inverted: bool = False
    error: Optional[Exception] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ResolvedPosition:
    """
    A single position read straight from the NonfungiblePositionManager.

    ``tokens_owed0/1`` are the fees already checkpointed to the position
    record, formatted at each token's decimals. Fees accrued since the last
    checkpoint are still embedded in the pool's fee growth and are NOT
    included.
    """

    position: Position
    token0: TokenMeta
    token1: TokenMeta
    fee_tier: int
    operator: str
    pool_address: str
    current_tick: int
    tokens_owed0: str
    tokens_owed1: str
    network: str
    dex_slug: str

    @property
    def pair(self) -> str:
        return f"{self.token0.symbol}/{self.token1.symbol}"


@dataclass(frozen=True)
class RangeSuggestion:
    """A market-making band around a spot price."""

    label: str
    width_pct: int
    min_price: str
    max_price: str
