#!/usr/bin/env python3
"""
Liquidity Aggregator — Pools × Positions for a Token
=====================================================

Top-level query of the engine: given a token address, discover its ranked
concentrated-liquidity pools and attach the largest positions of each.

Flow:
  1. PoolScout.discover_pools(token)        → ranked V3 pools (one HTTP call)
  2. PositionIndexer.fetch_positions(pool)  → concurrently, one per pool
  3. drop pools whose branch failed or has no positions

Output order is discovery order (liquidity descending) regardless of which
subgraph answers first. A failing pool is logged and left out; it never
fails the whole query.
"""

import asyncio
import logging
from typing import List, Optional

import httpx

from lp_lens.central_config import config
from lp_lens.dexscreener_client import DexScreenerClient
from lp_lens.errors import NoPoolsFoundError
from lp_lens.models import PoolPositions, PoolSummary, PositionFetch
from lp_lens.subgraph_client import SubgraphClient
from pool_scout import PoolScout
from position_indexer import PositionIndexer

logger = logging.getLogger(__name__)


class LiquidityAggregator:
    """Composes pool discovery and per-pool position indexing."""

    def __init__(
        self,
        scout: PoolScout,
        indexer: PositionIndexer,
        max_concurrency: int = None,
    ):
        self.scout = scout
        self.indexer = indexer
        self.max_concurrency = (
            max_concurrency if max_concurrency is not None else config.engine.MAX_CONCURRENCY
        )

    async def _fetch_all(self, pools: List[PoolSummary]) -> List[PositionFetch]:
        semaphore = asyncio.Semaphore(max(self.max_concurrency, 1))

        async def _bounded(pool: PoolSummary) -> PositionFetch:
            async with semaphore:
                return await self.indexer.fetch_positions(pool)

        # gather keeps input order
        return await asyncio.gather(*(_bounded(p) for p in pools))

    async def aggregate(
        self, token_address: str, network: Optional[str] = None
    ) -> List[PoolPositions]:
        """
        Ranked pools of a token, each with its top positions.

        Returns:
            One PoolPositions per pool that produced at least one position,
            in discovery order. Empty when every pool was dropped.

        Raises:
            InvalidInputError: empty token address.
            UpstreamUnavailableError / UpstreamMalformedError: discovery failed.
            NoPoolsFoundError: discovery returned zero pools.
        """
        pools = await self.scout.discover_pools(token_address, network=network)
        if not pools:
            raise NoPoolsFoundError(token_address)

        fetches = await self._fetch_all(pools)

        results = []
        for fetch in fetches:
            if not fetch.ok:
                logger.warning(
                    "aggregator: pool dropped pool=%s platform=%s reason=%s",
                    fetch.pool.address,
                    fetch.pool.platform,
                    str(fetch.error) or fetch.error.__class__.__name__,
                )
                continue
            if not fetch.positions:
                continue
            results.append(
                PoolPositions(
                    pool=fetch.pool,
                    current_tick=fetch.current_tick,
                    positions=fetch.positions,
                    token0=fetch.token0,
                    token1=fetch.token1,
                    fee_tier=fetch.fee_tier,
                    inverted=fetch.inverted,
                )
            )

        logger.info(
            "aggregator: done token=%s pools=%s reported=%s",
            token_address,
            len(pools),
            len(results),
        )
        return results


async def aggregate(
    token_address: str,
    network: Optional[str] = None,
    top_n: int = None,
    invert_prices: bool = False,
    http: Optional[httpx.AsyncClient] = None,
) -> List[PoolPositions]:
    """
    Library entry point: aggregate positions for a token.

    All upstream calls share one httpx client, either ``http`` or one opened
    for the duration of this call.
    """
    async def _run(client: httpx.AsyncClient) -> List[PoolPositions]:
        scout = PoolScout(DexScreenerClient(http=client), top_n=top_n)
        indexer = PositionIndexer(SubgraphClient(http=client), invert_prices=invert_prices)
        return await LiquidityAggregator(scout, indexer).aggregate(token_address, network=network)

    if http is not None:
        return await _run(http)
    timeout = max(config.api.TIMEOUT_SECONDS, config.subgraph.TIMEOUT_SECONDS)
    async with httpx.AsyncClient(timeout=timeout, verify=True) as client:
        return await _run(client)
