#!/usr/bin/env python3
"""
RPC Helpers — ABI Encoding/Decoding and JSON-RPC Client
========================================================

Low-level EVM read primitives used by position_reader.py:

  • ABI encoding/decoding (uint256, int256, address, uint24, string)
  • JSON-RPC client (eth_call, eth_call_batch)

All constants reference the Ethereum ABI specification:
  https://docs.soliditylang.org/en/latest/abi-spec.html

Terminology:
  • Word:  32 bytes = 256 bits = 64 hex characters
  • Slot:  Position of a 32-byte word in an ABI response
  • Q256:  2^256 — two's complement boundary for int256
"""

import httpx
from typing import List, Optional, Tuple

from lp_lens.central_config import config
from lp_lens.errors import UpstreamMalformedError, UpstreamUnavailableError
from lp_lens.http_session import http_session

# ── ABI Word Constants ──────────────────────────────────────────────────

ABI_WORD_BYTES = 32          # 1 ABI word = 32 bytes
ABI_WORD_HEX = 64            # 32 bytes × 2 hex chars = 64 hex characters
ADDRESS_PAD_HEX = 24          # Left padding in a 32-byte slot = 64 - 40 = 24 hex chars
SIGN_BIT = 1 << 255           # Two's complement sign bit for int256
Q256 = 2 ** 256              # int256 overflow boundary (two's complement wrap)

ZERO_ADDRESS = "0x" + "0" * 40

SOURCE = "rpc"

# ── Common Token Symbol Normalization ───────────────────────────────────
# Some on-chain symbols use non-standard Unicode or suffixes.

SYMBOL_MAP = {
    "USD₮0": "USDT",
    "USD₮": "USDT",
    "USDT0": "USDT",
}


def normalize_symbol(raw_symbol: str) -> str:
    """Normalize on-chain token symbol to common name."""
    cleaned = raw_symbol.strip().strip("\x00")
    return SYMBOL_MAP.get(cleaned, cleaned)


# ── Privacy-Preserving RPC Endpoints via 1RPC.io ────────────────────────
# Free tier, no API key required.
# Networks: https://docs.1rpc.io/using-the-web3-api/networks

RPC_URLS: dict[str, str] = {
    "bsc": "https://1rpc.io/bnb",
    "ethereum": "https://1rpc.io/eth",
    "arbitrum": "https://1rpc.io/arb",
    "polygon": "https://1rpc.io/matic",
    "base": "https://1rpc.io/base",
    "optimism": "https://1rpc.io/op",
}


# ── ABI Function Selectors ──────────────────────────────────────────────
# First 4 bytes of keccak256(function_signature).

SELECTORS: dict[str, str] = {
    # NonfungiblePositionManager
    "positions":              "0x99fbab88",  # positions(uint256)
    "ownerOf":                "0x6352211e",  # ownerOf(uint256)

    # UniswapV3Pool (read-only state)
    "slot0":                  "0x3850c7bd",  # slot0()

    # UniswapV3Factory
    "getPool":                "0x1698ee82",  # getPool(address,address,uint24)

    # ERC-20 metadata
    "symbol":                 "0x95d89b41",  # symbol()
    "decimals":               "0x313ce567",  # decimals()
}


# ── ABI Encoding ────────────────────────────────────────────────────────

def encode_uint256(value: int) -> str:
    """ABI-encode a uint256 as 32-byte hex (no 0x prefix).

    >>> encode_uint256(1)
    '0000000000000000000000000000000000000000000000000000000000000001'
    """
    if value < 0 or value >= Q256:
        raise ValueError(f"uint256 out of range: {value}")
    return format(value, f'0{ABI_WORD_HEX}x')


def encode_address(addr: str) -> str:
    """ABI-encode an address as 32 bytes (left-padded, no 0x prefix).

    >>> encode_address('0x46A15B0b27311cedF172AB29E4f4766fbE7F4364')
    '00000000000000000000000046a15b0b27311cedf172ab29e4f4766fbe7f4364'
    """
    return addr.lower().replace("0x", "").zfill(ABI_WORD_HEX)


def encode_uint24(val: int) -> str:
    """ABI-encode a uint24 as 32 bytes (for fee tier parameter).

    >>> encode_uint24(3000)
    '0000000000000000000000000000000000000000000000000000000000000bb8'
    """
    return format(val, f'0{ABI_WORD_HEX}x')


# ── ABI Decoding ────────────────────────────────────────────────────────

def decode_uint(hex_data: str, slot: int = 0) -> int:
    """Decode uint256 from ABI response at 32-byte slot offset.

    Args:
        hex_data: Hex string (without 0x prefix).
        slot: Which 32-byte word to read (0-indexed).

    Raises:
        ValueError: if the slot is missing or not hex.
    """
    start = slot * ABI_WORD_HEX
    word = hex_data[start:start + ABI_WORD_HEX]
    if len(word) != ABI_WORD_HEX:
        raise ValueError(f"ABI response too short for slot {slot}")
    return int(word, 16)


def decode_int(hex_data: str, slot: int = 0) -> int:
    """Decode int256 (two's complement) from ABI response."""
    val = decode_uint(hex_data, slot)
    if val >= SIGN_BIT:
        return val - Q256
    return val


def decode_address(hex_data: str, slot: int = 0) -> str:
    """Decode address (last 20 bytes of 32-byte slot)."""
    start = slot * ABI_WORD_HEX
    word = hex_data[start:start + ABI_WORD_HEX]
    if len(word) != ABI_WORD_HEX:
        raise ValueError(f"ABI response too short for slot {slot}")
    return "0x" + word[ADDRESS_PAD_HEX:]


def decode_string(hex_data: str) -> str:
    """Decode ABI-encoded dynamic string return value.

    Handles both standard dynamic strings (offset + length + data)
    and non-standard bytes32 returns from some token contracts.
    """
    try:
        offset = decode_uint(hex_data, 0)
        word_offset = offset // ABI_WORD_BYTES
        length = decode_uint(hex_data, word_offset)
        start_byte = (word_offset + 1) * ABI_WORD_HEX
        hex_str = hex_data[start_byte:start_byte + length * 2]
        return bytes.fromhex(hex_str).decode("utf-8").strip("\x00")
    except (ValueError, OverflowError):
        # Some tokens return bytes32 instead of string
        try:
            raw = bytes.fromhex(hex_data[:ABI_WORD_HEX])
            return raw.decode("utf-8").strip("\x00").strip()
        except ValueError:
            return "UNK"


# ── JSON-RPC Client ─────────────────────────────────────────────────────

def _call_payload(request_id: int, to: str, data: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "eth_call",
        "params": [{"to": to, "data": data}, "latest"],
    }


def _result_hex(raw) -> str:
    """Strip the 0x prefix of an eth_call result; None means nothing returned."""
    if raw is None or raw == "":
        return ""
    if not isinstance(raw, str) or not raw.startswith("0x"):
        raise UpstreamMalformedError(f"RPC result is not 0x-prefixed hex: {raw!r}", source=SOURCE)
    return raw[2:]


async def _post_rpc(rpc_url: str, payload, timeout: float, client: Optional[httpx.AsyncClient]):
    try:
        async with http_session(client, timeout) as session:
            resp = await session.post(rpc_url, json=payload, timeout=timeout)
            resp.raise_for_status()
    except httpx.TimeoutException as exc:
        raise UpstreamUnavailableError(f"RPC timed out after {timeout}s", source=SOURCE) from exc
    except httpx.HTTPError as exc:
        raise UpstreamUnavailableError(
            f"RPC request failed: {exc.__class__.__name__}", source=SOURCE
        ) from exc
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamMalformedError("RPC returned a non-JSON body", source=SOURCE) from exc


async def eth_call(
    rpc_url: str,
    to: str,
    data: str,
    timeout: float = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Execute a single eth_call against ``rpc_url`` and return the result
    hex without its 0x prefix.

    Raises:
        RuntimeError: the node answered with an error or an empty result.
        UpstreamUnavailableError: transport failure or timeout.
        UpstreamMalformedError: the body is not a JSON-RPC object.
    """
    timeout = timeout if timeout is not None else config.rpc.TIMEOUT_SECONDS
    result = await _post_rpc(rpc_url, _call_payload(1, to, data), timeout, client)
    if not isinstance(result, dict):
        raise UpstreamMalformedError("RPC response is not an object", source=SOURCE)
    if "error" in result:
        error = result["error"]
        message = error.get("message", error) if isinstance(error, dict) else error
        raise RuntimeError(f"RPC error: {message}")
    raw = _result_hex(result.get("result"))
    if len(raw) < 2:
        raise RuntimeError(f"Empty eth_call result from {to}")
    return raw


async def eth_call_batch(
    rpc_url: str,
    calls: List[Tuple[str, str]],
    timeout: float = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[str]:
    """Send ``(to, data)`` calls as one JSON-RPC batch.

    Results come back in call order; a call that failed or returned
    nothing yields "".
    """
    timeout = timeout if timeout is not None else config.rpc.TIMEOUT_SECONDS
    payloads = [_call_payload(i, to, data) for i, (to, data) in enumerate(calls, start=1)]
    results = await _post_rpc(rpc_url, payloads, timeout, client)

    if isinstance(results, list):
        by_id = {r.get("id"): r for r in results if isinstance(r, dict)}
        return [_result_hex((by_id.get(i) or {}).get("result")) for i in range(1, len(calls) + 1)]
    if isinstance(results, dict):
        # node ignored batching and answered the first call only
        return [_result_hex(results.get("result"))] + [""] * (len(calls) - 1)
    raise UpstreamMalformedError("RPC batch response is not a list", source=SOURCE)
