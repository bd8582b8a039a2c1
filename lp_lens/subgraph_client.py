"""
V3 Subgraph Client — pool state and top positions via GraphQL
==============================================================

One POST per pool against a The Graph endpoint. The endpoint is chosen by the
caller (see ``lp_lens.dex_registry``); this client only speaks GraphQL.

Schema reference: https://github.com/Uniswap/v3-subgraph/blob/main/schema.graphql
"""

import asyncio
import logging
from typing import Optional

import httpx

from lp_lens.central_config import config
from lp_lens.errors import UpstreamMalformedError, UpstreamUnavailableError
from lp_lens.http_session import http_session
from lp_lens.schemas import SubgraphPositionsData, parse_payload

logger = logging.getLogger(__name__)

SOURCE = "subgraph"

POOL_POSITIONS_QUERY = """
query PoolPositions($poolAddr: String!, $first: Int!) {
  pool(id: $poolAddr) {
    tick
    token0 { id symbol decimals }
    token1 { id symbol decimals }
    feeTier
  }
  positions(
    first: $first
    where: { pool: $poolAddr, liquidity_gt: 0 }
    orderBy: liquidity
    orderDirection: desc
  ) {
    id
    owner
    tickLower { tickIdx }
    tickUpper { tickIdx }
    liquidity
    collectedFeesToken0
    collectedFeesToken1
  }
}
"""


class SubgraphClient:
    def __init__(self, http: Optional[httpx.AsyncClient] = None, timeout: float = None):
        self._http = http
        self.timeout = timeout if timeout is not None else config.subgraph.TIMEOUT_SECONDS

    async def post_graphql(self, url: str, query: str, variables: dict) -> dict:
        """Run one GraphQL query and return its ``data`` object."""
        try:
            async with http_session(self._http, self.timeout) as client:
                response = await client.post(
                    url,
                    json={"query": query, "variables": variables},
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise UpstreamUnavailableError(
                f"subgraph timed out after {self.timeout}s", source=SOURCE
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailableError(
                f"subgraph HTTP error {exc.response.status_code}", source=SOURCE
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(
                f"subgraph request failed: {exc.__class__.__name__}", source=SOURCE
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamMalformedError("subgraph returned a non-JSON body", source=SOURCE) from exc
        if not isinstance(payload, dict):
            raise UpstreamMalformedError("subgraph body is not an object", source=SOURCE)

        errors = payload.get("errors") or []
        if errors:
            message = " | ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise UpstreamUnavailableError(f"subgraph returned errors: {message}", source=SOURCE)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise UpstreamMalformedError("subgraph response has no data object", source=SOURCE)
        return data

    async def fetch_pool_positions(
        self, url: str, pool_address: str, first: int = None
    ) -> SubgraphPositionsData:
        """Pool tick, token decimals and the top ``first`` positions by liquidity."""
        first = first if first is not None else config.subgraph.POSITIONS_PAGE_SIZE
        pool_id = pool_address.lower()
        data = await self.post_graphql(
            url, POOL_POSITIONS_QUERY, {"poolAddr": pool_id, "first": first}
        )
        parsed = parse_payload(SubgraphPositionsData, data, source=SOURCE)
        logger.debug(
            "subgraph_client: pool_positions pool=%s found=%s positions=%s",
            pool_id,
            parsed.pool is not None,
            len(parsed.positions),
        )
        return parsed
