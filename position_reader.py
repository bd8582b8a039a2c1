#!/usr/bin/env python3
"""
On-Chain Position Reader for V3 Position NFTs
==============================================

Resolves one position by its NFT token id directly from the chain via public
JSON-RPC. No API key required. No web3.py dependency — uses httpx for raw
eth_call.

Data Sources (per RPC call):
─────────────────────────────
1. NonfungiblePositionManager.positions(tokenId)
   Returns: nonce, operator, token0, token1, fee, tickLower, tickUpper,
            liquidity, feeGrowthInside0LastX128, feeGrowthInside1LastX128,
            tokensOwed0, tokensOwed1
   Ref: https://github.com/Uniswap/v3-periphery/blob/main/contracts/NonfungiblePositionManager.sol

2. NonfungiblePositionManager.ownerOf(tokenId)   (ERC-721)

3. UniswapV3Factory.getPool(token0, token1, fee) → Pool.slot0()
   Returns: sqrtPriceX96, tick (current price state)
   Ref: https://github.com/Uniswap/v3-core/blob/main/contracts/UniswapV3Pool.sol

4. ERC-20.decimals(), ERC-20.symbol()   (one batched request for both tokens)

Calls 2–4 only depend on call 1 and run concurrently.

Fees:
  tokensOwed0/1 are the fees checkpointed into the position record at its
  last modification. Fees accrued since then are not included.
"""

import asyncio
import logging
from typing import Optional, Tuple

import httpx

from lp_lens.central_config import config
from lp_lens.dex_registry import (
    get_dex_display_name,
    get_factory_address,
    get_position_manager_address,
)
from lp_lens.errors import InvalidInputError, LPLensError, PositionLookupFailedError
from lp_lens.models import Position, ResolvedPosition, TokenMeta
from lp_lens.rpc_helpers import (
    # Constants
    Q256,
    RPC_URLS,
    SELECTORS,
    ZERO_ADDRESS,
    # Encoding
    encode_address as _encode_address,
    encode_uint24 as _encode_uint24,
    encode_uint256 as _encode_uint256,
    # Decoding
    decode_address as _decode_address,
    decode_int as _decode_int,
    decode_string as _decode_string,
    decode_uint as _decode_uint,
    # RPC
    eth_call as _eth_call,
    eth_call_batch as _eth_call_batch,
    # Symbol normalization
    normalize_symbol as _normalize_symbol,
)
from tick_math import format_units, is_in_range, price_range

logger = logging.getLogger(__name__)


async def _gather_or_cancel(*coros):
    """asyncio.gather whose first failure cancels and awaits the other branches."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


def parse_position_id(position_id) -> int:
    """Validate an NFT token id given as int or decimal string."""
    if isinstance(position_id, bool):
        raise InvalidInputError(f"Invalid position id: {position_id!r}")
    if isinstance(position_id, int):
        token_id = position_id
    else:
        text = str(position_id or "").strip()
        if not text:
            raise InvalidInputError("Position id required")
        if not text.isdigit():
            raise InvalidInputError(f"Position id must be a non-negative integer: {text!r}")
        token_id = int(text)
    if not 0 <= token_id < Q256:
        raise InvalidInputError(f"Position id out of uint256 range: {token_id}")
    return token_id


# ── Position Reader ─────────────────────────────────────────────────────


class PositionReader:
    """
    Reads one V3-compatible position straight from its position manager.
    Supports Uniswap V3, PancakeSwap V3 and SushiSwap V3.

    Usage:
        reader = PositionReader("bsc", dex_slug="pancakeswap_v3")
        resolved = await reader.resolve_position(1234567)
    """

    def __init__(
        self,
        network: str = config.engine.DEFAULT_NETWORK,
        dex_slug: str = config.engine.DEFAULT_DEX,
        http: Optional[httpx.AsyncClient] = None,
        rpc_url: str = None,
        timeout: float = None,
        invert_prices: bool = False,
    ):
        if rpc_url is None and network not in RPC_URLS:
            raise InvalidInputError(
                f"Unsupported network: {network}. Available: {list(RPC_URLS.keys())}"
            )
        position_manager = get_position_manager_address(dex_slug, network)
        factory = get_factory_address(dex_slug, network)
        if not position_manager or not factory:
            raise InvalidInputError(
                f"{get_dex_display_name(dex_slug)} has no deployment on {network}"
            )

        self.network = network
        self.dex_slug = dex_slug
        self.rpc_url = rpc_url or RPC_URLS[network]
        self.position_manager = position_manager
        self.factory = factory
        self.timeout = timeout if timeout is not None else config.rpc.TIMEOUT_SECONDS
        self.invert_prices = invert_prices
        self._http = http

    async def _call(self, to: str, data: str) -> str:
        return await _eth_call(self.rpc_url, to, data, timeout=self.timeout, client=self._http)

    # ── Internal: Read position NFT ──────────────────────────────────

    async def _read_position_nft(self, token_id: int) -> dict:
        """
        Call NonfungiblePositionManager.positions(uint256 tokenId).

        Returns 12 fields per the contract ABI.
        """
        calldata = SELECTORS["positions"] + _encode_uint256(token_id)
        result = await self._call(self.position_manager, calldata)

        return {
            "nonce":                       _decode_uint(result, 0),
            "operator":                    _decode_address(result, 1),
            "token0":                      _decode_address(result, 2),
            "token1":                      _decode_address(result, 3),
            "fee":                         _decode_uint(result, 4),
            "tickLower":                   _decode_int(result, 5),
            "tickUpper":                   _decode_int(result, 6),
            "liquidity":                   _decode_uint(result, 7),
            "feeGrowthInside0LastX128":    _decode_uint(result, 8),
            "feeGrowthInside1LastX128":    _decode_uint(result, 9),
            "tokensOwed0":                 _decode_uint(result, 10),
            "tokensOwed1":                 _decode_uint(result, 11),
        }

    # ── Internal: Token metadata ─────────────────────────────────────

    async def _read_token_meta(self, token0: str, token1: str) -> Tuple[TokenMeta, TokenMeta]:
        """decimals() + symbol() for both tokens in one batched request."""
        results = await _eth_call_batch(
            self.rpc_url,
            [
                (token0, SELECTORS["decimals"]),
                (token0, SELECTORS["symbol"]),
                (token1, SELECTORS["decimals"]),
                (token1, SELECTORS["symbol"]),
            ],
            timeout=self.timeout,
            client=self._http,
        )
        dec0_hex, sym0_hex, dec1_hex, sym1_hex = results
        metas = []
        for address, dec_hex, sym_hex in (
            (token0, dec0_hex, sym0_hex),
            (token1, dec1_hex, sym1_hex),
        ):
            if not dec_hex:
                raise RuntimeError(f"decimals() returned nothing for {address}")
            decimals = _decode_uint(dec_hex, 0)
            if decimals > 255:
                raise ValueError(f"decimals() out of range for {address}: {decimals}")
            symbol = _normalize_symbol(_decode_string(sym_hex)) if sym_hex else "UNK"
            metas.append(TokenMeta(address=address, symbol=symbol or "UNK", decimals=decimals))
        return metas[0], metas[1]

    async def _read_owner(self, token_id: int) -> str:
        result = await self._call(self.position_manager, SELECTORS["ownerOf"] + _encode_uint256(token_id))
        return _decode_address(result, 0)

    # ── Internal: Pool state via Factory ─────────────────────────────

    async def _read_pool_tick(self, token0: str, token1: str, fee: int) -> Tuple[str, int]:
        """
        Resolve the pool with UniswapV3Factory.getPool(token0, token1, fee)
        and read its current tick from slot0().
        """
        calldata = (
            SELECTORS["getPool"]
            + _encode_address(token0)
            + _encode_address(token1)
            + _encode_uint24(fee)
        )
        result = await self._call(self.factory, calldata)
        pool = _decode_address(result, 0)
        if pool == ZERO_ADDRESS:
            raise RuntimeError(
                f"Pool not found for {token0[:10]}.../{token1[:10]}... fee={fee}"
            )
        slot0 = await self._call(pool, SELECTORS["slot0"])
        # slot0: (sqrtPriceX96, tick, ...)
        return pool, _decode_int(slot0, 1)

    # ── Public ───────────────────────────────────────────────────────

    async def _resolve(self, token_id: int) -> ResolvedPosition:
        nft = await self._read_position_nft(token_id)
        if nft["token0"] == ZERO_ADDRESS:
            raise PositionLookupFailedError(token_id, "position does not exist")

        (meta0, meta1), owner, (pool_address, current_tick) = await _gather_or_cancel(
            self._read_token_meta(nft["token0"], nft["token1"]),
            self._read_owner(token_id),
            self._read_pool_tick(nft["token0"], nft["token1"], nft["fee"]),
        )

        lower, upper = nft["tickLower"], nft["tickUpper"]
        position = Position(
            id=str(token_id),
            owner=owner,
            tick_lower=lower,
            tick_upper=upper,
            liquidity=str(nft["liquidity"]),
            price_range=price_range(
                lower, upper, meta0.decimals, meta1.decimals, invert=self.invert_prices
            ),
            in_range=is_in_range(current_tick, lower, upper),
        )
        return ResolvedPosition(
            position=position,
            token0=meta0,
            token1=meta1,
            fee_tier=nft["fee"],
            operator=nft["operator"],
            pool_address=pool_address,
            current_tick=current_tick,
            tokens_owed0=format_units(nft["tokensOwed0"], meta0.decimals),
            tokens_owed1=format_units(nft["tokensOwed1"], meta1.decimals),
            network=self.network,
            dex_slug=self.dex_slug,
        )

    async def resolve_position(self, position_id) -> ResolvedPosition:
        """
        Read one position NFT and classify it against its pool.

        A malformed id (empty, non-integer, outside uint256) is a caller error
        and raises InvalidInputError before any RPC. A well-formed id the
        position manager rejects or does not know is a lookup failure.

        Raises:
            InvalidInputError: malformed id (no network call made).
            PositionLookupFailedError: any RPC, transport or decoding failure,
                or a position that does not exist. No partial results.
        """
        token_id = parse_position_id(position_id)
        try:
            resolved = await self._resolve(token_id)
        except PositionLookupFailedError:
            raise
        except (LPLensError, RuntimeError, ValueError, httpx.HTTPError, asyncio.TimeoutError) as exc:
            logger.warning(
                "position_reader: lookup failed position=%s network=%s dex=%s reason=%s",
                token_id,
                self.network,
                self.dex_slug,
                str(exc) or exc.__class__.__name__,
            )
            raise PositionLookupFailedError(
                token_id, str(exc) or exc.__class__.__name__
            ) from exc

        logger.info(
            "position_reader: resolved position=%s pool=%s in_range=%s",
            token_id,
            resolved.pool_address,
            resolved.position.in_range,
        )
        return resolved


async def resolve_position(
    position_id,
    network: str = config.engine.DEFAULT_NETWORK,
    dex_slug: str = config.engine.DEFAULT_DEX,
    invert_prices: bool = False,
    http: Optional[httpx.AsyncClient] = None,
) -> ResolvedPosition:
    """Library entry point: resolve one position over a single shared client."""
    if http is not None:
        reader = PositionReader(network, dex_slug, http=http, invert_prices=invert_prices)
        return await reader.resolve_position(position_id)
    async with httpx.AsyncClient(timeout=config.rpc.TIMEOUT_SECONDS, verify=True) as client:
        reader = PositionReader(network, dex_slug, http=client, invert_prices=invert_prices)
        return await reader.resolve_position(position_id)
