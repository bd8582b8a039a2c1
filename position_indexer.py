#!/usr/bin/env python3
"""
V3 Position Indexer — Top Positions per Pool
=============================================

Fetches the largest liquidity positions of a concentrated-liquidity pool from
its DEX's indexing subgraph and normalizes them against the pool's current
tick.

  Supported DEXes (see lp_lens/dex_registry.py):
    🦄 Uniswap V3    — bsc, ethereum
    🥞 PancakeSwap V3 — bsc
    🍣 SushiSwap V3   — bsc

Flow per pool:
  1. platform + network → subgraph endpoint (static registry)
  2. one GraphQL query  → pool tick, token decimals, top K positions
  3. per position       → price range (tick_math), in-range flag

Every failure is contained in the pool's own result: a slow or broken
subgraph yields an empty, annotated PositionFetch and never aborts sibling
pools.
"""

import asyncio
import logging
from typing import List, Mapping, Optional

import httpx

from lp_lens.central_config import config
from lp_lens.dex_registry import get_subgraph_endpoint
from lp_lens.errors import LPLensError
from lp_lens.models import PoolSummary, Position, PositionFetch, TokenMeta
from lp_lens.schemas import SubgraphPosition, SubgraphToken
from lp_lens.subgraph_client import SubgraphClient
from tick_math import MAX_TICK, MIN_TICK, is_in_range, price_range

logger = logging.getLogger(__name__)


# ── Normalization ───────────────────────────────────────────────────────


def _token_meta(token: SubgraphToken) -> TokenMeta:
    return TokenMeta(address=token.id or "", symbol=token.symbol or "?", decimals=token.decimals)


def normalize_position(
    raw: SubgraphPosition,
    current_tick: int,
    decimals0: int,
    decimals1: int,
    invert: bool = False,
) -> Optional[Position]:
    """
    Classify one indexed position against the pool's current tick.

    Returns None for positions that must not be reported: zero or negative
    liquidity, inverted bounds, or ticks outside the protocol range.
    """
    if int(raw.liquidity) <= 0:
        return None

    lower = raw.tick_lower.tick_idx
    upper = raw.tick_upper.tick_idx
    if lower > upper or lower < MIN_TICK or upper > MAX_TICK:
        logger.warning(
            "position_indexer: invalid ticks position=%s lower=%s upper=%s",
            raw.id,
            lower,
            upper,
        )
        return None

    return Position(
        id=raw.id,
        owner=raw.owner,
        tick_lower=lower,
        tick_upper=upper,
        liquidity=raw.liquidity,
        price_range=price_range(lower, upper, decimals0, decimals1, invert=invert),
        in_range=is_in_range(current_tick, lower, upper),
        collected_fees0=raw.collected_fees_token0,
        collected_fees1=raw.collected_fees_token1,
    )


# ── Position Indexer ────────────────────────────────────────────────────


class PositionIndexer:
    """
    Reads the top positions of discovered pools from V3 subgraphs.

    Usage:
        indexer = PositionIndexer()
        fetch = await indexer.fetch_positions(pool)     # explicit outcome
        positions = await indexer.normalize_positions(pool)  # [] on any failure
    """

    def __init__(
        self,
        subgraph: Optional[SubgraphClient] = None,
        endpoints: Optional[Mapping[str, str]] = None,
        top_k: int = None,
        invert_prices: bool = False,
        timeout: float = None,
    ):
        self.subgraph = subgraph or SubgraphClient()
        # platform → endpoint overrides; anything missing falls back to the registry
        self.endpoints = dict(endpoints or {})
        self.top_k = top_k if top_k is not None else config.subgraph.POSITIONS_PAGE_SIZE
        self.invert_prices = invert_prices
        self.timeout = timeout if timeout is not None else config.subgraph.TIMEOUT_SECONDS

    def resolve_endpoint(self, pool: PoolSummary) -> Optional[str]:
        override = self.endpoints.get(pool.platform.lower())
        if override:
            return override
        return get_subgraph_endpoint(pool.platform, pool.network)

    async def _query(self, pool: PoolSummary, url: str) -> PositionFetch:
        data = await asyncio.wait_for(
            self.subgraph.fetch_pool_positions(url, pool.address, first=self.top_k),
            timeout=self.timeout,
        )
        if data.pool is None or data.pool.tick is None:
            logger.info("position_indexer: pool not indexed pool=%s", pool.address)
            return PositionFetch(pool=pool)

        current_tick = data.pool.tick
        token0 = _token_meta(data.pool.token0)
        token1 = _token_meta(data.pool.token1)
        d0, d1 = token0.decimals, token1.decimals
        positions = []
        for raw in data.positions:
            normalized = normalize_position(raw, current_tick, d0, d1, self.invert_prices)
            if normalized is not None:
                positions.append(normalized)

        # Upstream ordering is not trusted
        positions.sort(key=lambda p: int(p.liquidity), reverse=True)
        return PositionFetch(
            pool=pool,
            current_tick=current_tick,
            positions=tuple(positions),
            token0=token0,
            token1=token1,
            fee_tier=data.pool.fee_tier,
            inverted=self.invert_prices,
        )

    async def fetch_positions(self, pool: PoolSummary) -> PositionFetch:
        """
        Top positions of one pool, or the reason there are none.

        Never raises. An unsupported platform is a deliberate skip
        (``error`` is None); transport, timeout and schema failures are
        recorded in ``error``.
        """
        url = self.resolve_endpoint(pool)
        if not url:
            logger.info(
                "position_indexer: unsupported platform platform=%s network=%s pool=%s",
                pool.platform,
                pool.network,
                pool.address,
            )
            return PositionFetch(pool=pool)

        try:
            return await self._query(pool, url)
        except (LPLensError, httpx.HTTPError, asyncio.TimeoutError) as exc:
            logger.warning(
                "position_indexer: fetch failed pool=%s platform=%s reason=%s",
                pool.address,
                pool.platform,
                str(exc) or exc.__class__.__name__,
            )
            return PositionFetch(pool=pool, error=exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("position_indexer: unexpected error pool=%s", pool.address)
            return PositionFetch(pool=pool, error=exc)

    async def normalize_positions(self, pool: PoolSummary) -> List[Position]:
        """Positions of one pool, largest liquidity first; [] on any failure."""
        fetch = await self.fetch_positions(pool)
        return list(fetch.positions)
