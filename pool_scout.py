#!/usr/bin/env python3
"""
Pool Scout — Token Pool Discovery via DEXScreener
==================================================

Finds the pools that trade a token and ranks them by USD liquidity.

Data Source:
  DEXScreener API: https://api.dexscreener.com/latest/dex/tokens/{token}
  Rate Limit: 300 requests/minute (free, no key)

Features:
  - Concentrated-liquidity (V3-labelled) pools for position analysis
  - All-version pool summary with suggested market-making ranges
  - Stable ranking: liquidity descending, ties keep DEXScreener order
  - Optional network filter
"""

import logging
from decimal import Decimal
from typing import List, Optional

from lp_lens.central_config import config
from lp_lens.dexscreener_client import DexScreenerClient
from lp_lens.errors import InvalidInputError
from lp_lens.models import PoolSummary, TokenMeta
from lp_lens.schemas import DexPair
from tick_math import suggest_ranges

logger = logging.getLogger(__name__)


# ── Pair → PoolSummary ────────────────────────────────────────────────────


def to_pool_summary(pair: DexPair) -> PoolSummary:
    """Map a validated DEXScreener pair onto the engine's pool record."""
    base = pair.base_token
    quote = pair.quote_token
    volume = pair.volume.h24 if pair.volume and pair.volume.h24 is not None else None
    liquidity = (
        pair.liquidity.usd if pair.liquidity and pair.liquidity.usd is not None else None
    )
    return PoolSummary(
        address=pair.pair_address,
        platform=pair.dex_id,
        network=pair.chain_id,
        token0=TokenMeta(address=base.address, symbol=base.symbol or "UNK"),
        token1=TokenMeta(address=quote.address, symbol=quote.symbol or "UNK"),
        price_usd=pair.price_usd,
        volume_24h=volume if volume is not None else Decimal(0),
        liquidity_usd=liquidity if liquidity is not None else Decimal(0),
        labels=tuple(pair.labels or ()),
        url=pair.url,
    )


def rank_pools(pools: List[PoolSummary], limit: int) -> List[PoolSummary]:
    """Liquidity descending, stable on ties, truncated to ``limit``."""
    ranked = sorted(pools, key=lambda p: p.liquidity_usd, reverse=True)
    return ranked[: max(limit, 0)]


# ── Pool Scout ────────────────────────────────────────────────────────────


class PoolScout:
    """
    Token pool discovery engine powered by DEXScreener.

    One HTTP call per discovery. No caching: every call is a fresh fetch.
    """

    def __init__(
        self,
        dexscreener: Optional[DexScreenerClient] = None,
        top_n: int = None,
        summary_top_n: int = None,
    ):
        self.dexscreener = dexscreener or DexScreenerClient()
        self.top_n = top_n if top_n is not None else config.engine.TOP_POOLS
        self.summary_top_n = (
            summary_top_n if summary_top_n is not None else config.engine.SUMMARY_TOP_POOLS
        )

    async def _fetch_summaries(
        self, token_address: str, network: Optional[str]
    ) -> List[PoolSummary]:
        token = (token_address or "").strip()
        if not token:
            raise InvalidInputError("Token address required")

        pairs = await self.dexscreener.get_token_pairs(token)
        pools = [to_pool_summary(p) for p in pairs]
        if network:
            wanted = network.lower()
            pools = [p for p in pools if p.network.lower() == wanted]
        return pools

    async def discover_pools(
        self,
        token_address: str,
        concentrated_only: bool = True,
        network: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[PoolSummary]:
        """
        Ranked pools for a token.

        Args:
            token_address: Token contract address (any chain DEXScreener covers)
            concentrated_only: Keep only V3-labelled pools (needed for position data)
            network: e.g. "bsc" — filters by DEXScreener chainId
            limit: Max pools returned (default: configured top-N)

        Returns:
            Pools sorted by liquidity_usd descending. Empty when the token has
            no (matching) pools; that is a valid outcome, not an error.

        Raises:
            InvalidInputError: empty token address.
            UpstreamUnavailableError / UpstreamMalformedError: from DEXScreener.
        """
        pools = await self._fetch_summaries(token_address, network)
        total = len(pools)
        if concentrated_only:
            pools = [p for p in pools if p.is_concentrated]

        ranked = rank_pools(pools, self.top_n if limit is None else limit)
        logger.info(
            "pool_scout: discovered token=%s pairs=%s eligible=%s returned=%s",
            token_address,
            total,
            len(pools),
            len(ranked),
        )
        return ranked

    async def summarize_pools(
        self, token_address: str, network: Optional[str] = None
    ) -> List[PoolSummary]:
        """Top pools of any version, for pool-level overviews."""
        return await self.discover_pools(
            token_address,
            concentrated_only=False,
            network=network,
            limit=self.summary_top_n,
        )


# ── Helpers ───────────────────────────────────────────────────────────────


def _fmt_usd(value: Optional[Decimal]) -> str:
    if value is None:
        return "N/A"
    return f"${value:,.2f}"


def _fmt_price(value: Optional[Decimal]) -> str:
    if value is None or value == 0:
        return "0.00"
    if value < Decimal("0.000001"):
        return format(value, ".10f").rstrip("0").rstrip(".")
    if value < Decimal("0.01"):
        return format(value, ".8f").rstrip("0").rstrip(".")
    return format(value, ".4f")


def format_pools(pools: List[PoolSummary], with_ranges: bool = True) -> str:
    """Format a pool summary for CLI display."""
    if not pools:
        return "No pools found for this token."

    lines = []
    hdr = f"  {'#':>2} {'Pair':18s} {'DEX':14s} {'Chain':10s} {'Ver':4s} {'Price':>16s} {'Liquidity':>16s} {'Vol 24h':>16s}"
    lines.append(hdr)
    lines.append(f"  {'-' * (len(hdr) - 2)}")

    for i, p in enumerate(pools, 1):
        lines.append(
            f"  {i:>2} {p.pair[:18]:18s} {p.platform[:14]:14s} {p.network[:10]:10s} "
            f"{p.version:4s} {_fmt_price(p.price_usd):>16s} "
            f"{_fmt_usd(p.liquidity_usd):>16s} {_fmt_usd(p.volume_24h):>16s}"
        )
        if with_ranges:
            for s in suggest_ranges(p.price_usd):
                lines.append(
                    f"       {s.label:<13s} ±{s.width_pct}%  {s.min_price} – {s.max_price}"
                )

    return "\n".join(lines)
