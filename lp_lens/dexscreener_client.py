#!/usr/bin/env python3
"""
LP Lens — DEXScreener Market-Data Client
=========================================
Based on the official documentation: https://docs.dexscreener.com/api/reference

Lists every pair that trades a token. Responses are validated against
``lp_lens.schemas`` before use; transport and schema failures are raised as
classified errors and never downgraded to an empty list.
"""

import asyncio
import logging
from typing import List, Optional

import httpx

from lp_lens.central_config import config
from lp_lens.errors import UpstreamMalformedError, UpstreamUnavailableError
from lp_lens.http_session import http_session
from lp_lens.schemas import DexPair, DexTokenPairsResponse, parse_payload

logger = logging.getLogger(__name__)

SOURCE = "dexscreener"


class DexScreenerClient:
    """Official DEXScreener API client."""

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: str = None,
        timeout: float = None,
    ):
        self._http = http
        self.base_url = base_url or config.api.BASE_URL
        self.timeout = timeout if timeout is not None else config.api.TIMEOUT_SECONDS

    async def get_token_pairs(self, token_address: str) -> List[DexPair]:
        """
        Fetch all pairs containing ``token_address``.

        Official endpoint: /latest/dex/tokens/{tokenAddresses}
        Rate limit: 300 requests/minute

        Returns an empty list when DEXScreener knows no pair for the token.

        Raises:
            UpstreamUnavailableError: network error, timeout, non-2xx.
            UpstreamMalformedError: body is not JSON or not the expected shape.
        """
        url = config.api.get_token_pairs_url(token_address, self.base_url)

        try:
            async with http_session(self._http, self.timeout) as client:
                response = await client.get(url, timeout=self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise UpstreamUnavailableError(
                f"DEXScreener timed out after {self.timeout}s", source=SOURCE
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(
                f"DEXScreener request failed: {exc.__class__.__name__}", source=SOURCE
            ) from exc

        if response.status_code == 429:
            raise UpstreamUnavailableError(
                "DEXScreener rate limit reached (HTTP 429)", source=SOURCE
            )
        if not response.is_success:
            raise UpstreamUnavailableError(
                f"DEXScreener HTTP error {response.status_code}", source=SOURCE
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamMalformedError(
                "DEXScreener returned a non-JSON body", source=SOURCE
            ) from exc

        parsed = parse_payload(DexTokenPairsResponse, body, source=SOURCE)
        pairs = parsed.pairs or []
        logger.debug(
            "dexscreener_client: token_pairs token=%s pairs=%s", token_address, len(pairs)
        )
        return pairs
