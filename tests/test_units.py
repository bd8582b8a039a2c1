"""
Unit Tests for LP Lens Modules
===============================

Unit tests covering the building blocks under lp_lens/:
  - rpc_helpers.py         (ABI encoding/decoding, symbol normalization, JSON-RPC)
  - schemas.py             (upstream payload validation)
  - dex_registry.py        (platform → endpoint / contract resolution)
  - dexscreener_client.py  (status and body classification)
  - subgraph_client.py     (GraphQL transport and error classification)
  - central_config.py      (API config, URL builders)
  - models.py / errors.py  (record invariants, error taxonomy)
  - run.py                 (argparse parser structure, exit codes)

All tests are offline — no network calls. Mock-based where needed.
"""

import asyncio
import json
import re
from dataclasses import FrozenInstanceError
from decimal import Decimal
from unittest.mock import patch, MagicMock, AsyncMock

import httpx
import pytest


def _mock_http(handler):
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _run_with_http(handler, make_call):
    async def _go():
        async with _mock_http(handler) as http:
            return await make_call(http)

    return asyncio.run(_go())


# ═══════════════════════════════════════════════════════════════════════════
# 1. rpc_helpers.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.errors import UpstreamMalformedError, UpstreamUnavailableError
from lp_lens.rpc_helpers import (
    ABI_WORD_BYTES, ABI_WORD_HEX, SIGN_BIT, Q256, ZERO_ADDRESS,
    RPC_URLS, SELECTORS,
    normalize_symbol,
    encode_uint256, encode_address, encode_uint24,
    decode_uint, decode_int, decode_address, decode_string,
    eth_call, eth_call_batch,
)


class TestRpcConstants:
    def test_abi_word_bytes(self):
        assert ABI_WORD_BYTES == 32

    def test_abi_word_hex(self):
        assert ABI_WORD_HEX == 64

    def test_q256(self):
        assert Q256 == 2 ** 256

    def test_sign_bit(self):
        assert SIGN_BIT == 1 << 255

    def test_zero_address(self):
        assert ZERO_ADDRESS == "0x" + "0" * 40

    @pytest.mark.parametrize("name,selector", [
        ("positions", "0x99fbab88"),
        ("ownerOf", "0x6352211e"),
        ("slot0", "0x3850c7bd"),
        ("getPool", "0x1698ee82"),
        ("decimals", "0x313ce567"),
        ("symbol", "0x95d89b41"),
    ])
    def test_selectors(self, name, selector):
        assert SELECTORS[name] == selector

    def test_rpc_urls_cover_default_network(self):
        assert "bsc" in RPC_URLS
        assert all(url.startswith("https://") for url in RPC_URLS.values())


class TestNormalizeSymbol:
    def test_usdt_unicode(self):
        assert normalize_symbol("USD₮0") == "USDT"
        assert normalize_symbol("USD₮") == "USDT"
        assert normalize_symbol("USDT0") == "USDT"

    def test_passthrough(self):
        assert normalize_symbol("WBNB") == "WBNB"

    def test_strips_nul(self):
        assert normalize_symbol("CAKE\x00\x00") == "CAKE"


class TestEncodeUint256:
    def test_zero(self):
        assert encode_uint256(0) == "0" * 64

    def test_one(self):
        assert encode_uint256(1) == "0" * 63 + "1"

    def test_max_uint256(self):
        assert encode_uint256(Q256 - 1) == "f" * 64

    @pytest.mark.parametrize("value", [-1, Q256])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError):
            encode_uint256(value)


class TestEncodeAddress:
    def test_standard_address(self):
        result = encode_address("0x46A15B0b27311cedF172AB29E4f4766fbE7F4364")
        assert len(result) == 64
        assert result == "0" * 24 + "46a15b0b27311cedf172ab29e4f4766fbe7f4364"


class TestEncodeUint24:
    @pytest.mark.parametrize("fee,suffix", [(100, "64"), (500, "1f4"), (2500, "9c4"), (10000, "2710")])
    def test_fee_tiers(self, fee, suffix):
        result = encode_uint24(fee)
        assert len(result) == 64
        assert result.endswith(suffix)


class TestDecodeUint:
    def test_slot_offset(self):
        hex_data = "0" * 64 + "0" * 63 + "a"
        assert decode_uint(hex_data, 0) == 0
        assert decode_uint(hex_data, 1) == 10

    def test_short_response_raises(self):
        with pytest.raises(ValueError, match="too short"):
            decode_uint("0" * 64, 1)


class TestDecodeInt:
    def test_positive(self):
        assert decode_int("0" * 63 + "5", 0) == 5

    def test_negative(self):
        assert decode_int("f" * 64, 0) == -1

    def test_negative_tick(self):
        assert decode_int(format(Q256 - 887220, "064x"), 0) == -887220


class TestDecodeAddress:
    def test_slot_offset(self):
        addr_hex = "abcdef1234567890abcdef1234567890abcdef12"
        hex_data = "0" * 64 + "0" * 24 + addr_hex
        assert decode_address(hex_data, 1) == "0x" + addr_hex

    def test_short_response_raises(self):
        with pytest.raises(ValueError):
            decode_address("", 0)


class TestDecodeString:
    def test_standard_dynamic_string(self):
        hex_data = encode_uint256(32) + encode_uint256(4) + "43414b45" + "0" * 56
        assert decode_string(hex_data) == "CAKE"

    def test_bytes32_fallback(self):
        raw = b"MKR" + b"\x00" * 29
        assert decode_string(raw.hex()) == "MKR"


class TestEthCallMocked:
    """eth_call with a patched httpx client, as opened by http_session."""

    def _patched(self, payload):
        mock_response = MagicMock()
        mock_response.json.return_value = payload
        patcher = patch("lp_lens.http_session.httpx.AsyncClient")
        MockClient = patcher.start()
        mock_client = AsyncMock()
        mock_client.post.return_value = mock_response
        MockClient.return_value.__aenter__ = AsyncMock(return_value=mock_client)
        MockClient.return_value.__aexit__ = AsyncMock(return_value=False)
        return patcher, mock_client

    def test_successful_call(self):
        patcher, mock_client = self._patched(
            {"jsonrpc": "2.0", "id": 1, "result": "0x" + "0" * 63 + "1"}
        )
        try:
            result = asyncio.run(eth_call("http://fake", "0xAddr", "0xData"))
        finally:
            patcher.stop()
        assert result == "0" * 63 + "1"
        body = mock_client.post.call_args.kwargs["json"]
        assert body["method"] == "eth_call"
        assert body["params"][0] == {"to": "0xAddr", "data": "0xData"}

    def test_rpc_error_raises(self):
        patcher, _ = self._patched(
            {"jsonrpc": "2.0", "id": 1, "error": {"message": "execution reverted"}}
        )
        try:
            with pytest.raises(RuntimeError, match="RPC error: execution reverted"):
                asyncio.run(eth_call("http://fake", "0xAddr", "0xData"))
        finally:
            patcher.stop()

    def test_empty_response_raises(self):
        patcher, _ = self._patched({"jsonrpc": "2.0", "id": 1, "result": "0x"})
        try:
            with pytest.raises(RuntimeError, match="Empty eth_call result"):
                asyncio.run(eth_call("http://fake", "0xAddr", "0xData"))
        finally:
            patcher.stop()


class TestEthCallTransport:
    def test_connect_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            _run_with_http(handler, lambda http: eth_call("http://rpc", "0xA", "0xD", client=http))
        assert exc_info.value.source == "rpc"

    def test_http_500_is_unavailable(self):
        with pytest.raises(UpstreamUnavailableError):
            _run_with_http(
                lambda request: httpx.Response(500),
                lambda http: eth_call("http://rpc", "0xA", "0xD", client=http),
            )

    def test_non_json_is_malformed(self):
        with pytest.raises(UpstreamMalformedError):
            _run_with_http(
                lambda request: httpx.Response(200, text="<html>"),
                lambda http: eth_call("http://rpc", "0xA", "0xD", client=http),
            )

    @pytest.mark.parametrize("result", [5, True, "ab", {"hex": "0x01"}])
    def test_non_hex_result_is_malformed(self, result):
        with pytest.raises(UpstreamMalformedError, match="0x-prefixed"):
            _run_with_http(
                lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result}),
                lambda http: eth_call("http://rpc", "0xA", "0xD", client=http),
            )


class TestEthCallBatch:
    def test_results_ordered_by_id(self):
        def handler(request):
            calls = json.loads(request.content)
            assert [c["id"] for c in calls] == [1, 2]
            return httpx.Response(200, json=[
                {"jsonrpc": "2.0", "id": 2, "result": "0x" + "0" * 63 + "2"},
                {"jsonrpc": "2.0", "id": 1, "result": "0x" + "0" * 63 + "1"},
            ])

        results = _run_with_http(
            handler,
            lambda http: eth_call_batch("http://rpc", [("0xA", "0xD1"), ("0xB", "0xD2")], client=http),
        )
        assert results == ["0" * 63 + "1", "0" * 63 + "2"]

    def test_missing_and_failed_entries_are_empty(self):
        def handler(request):
            return httpx.Response(200, json=[
                {"jsonrpc": "2.0", "id": 1, "error": {"message": "reverted"}},
            ])

        results = _run_with_http(
            handler,
            lambda http: eth_call_batch("http://rpc", [("0xA", "0xD1"), ("0xB", "0xD2")], client=http),
        )
        assert results == ["", ""]

    def test_single_result_fallback(self):
        results = _run_with_http(
            lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xab"}),
            lambda http: eth_call_batch("http://rpc", [("0xA", "0xD"), ("0xB", "0xD")], client=http),
        )
        assert results == ["ab", ""]

    def test_non_string_entry_is_malformed(self):
        def handler(request):
            return httpx.Response(200, json=[
                {"jsonrpc": "2.0", "id": 1, "result": "0x01"},
                {"jsonrpc": "2.0", "id": 2, "result": 5},
            ])

        with pytest.raises(UpstreamMalformedError):
            _run_with_http(
                handler,
                lambda http: eth_call_batch("http://rpc", [("0xA", "0xD1"), ("0xB", "0xD2")], client=http),
            )

    def test_unexpected_shape_is_malformed(self):
        with pytest.raises(UpstreamMalformedError):
            _run_with_http(
                lambda request: httpx.Response(200, json="nope"),
                lambda http: eth_call_batch("http://rpc", [("0xA", "0xD")], client=http),
            )


# ═══════════════════════════════════════════════════════════════════════════
# 2. schemas.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.schemas import (
    DexPair,
    DexTokenPairsResponse,
    SubgraphPosition,
    SubgraphPositionsData,
    parse_payload,
)

PAIR_PAYLOAD = {
    "chainId": "bsc",
    "dexId": "pancakeswap",
    "url": "https://dexscreener.com/bsc/0xpool",
    "pairAddress": "0xPool",
    "labels": ["v3"],
    "baseToken": {"address": "0xCake", "name": "PancakeSwap Token", "symbol": "CAKE"},
    "quoteToken": {"address": "0xWbnb", "name": "Wrapped BNB", "symbol": "WBNB"},
    "priceUsd": "2.315",
    "volume": {"h24": 1500000.5, "h6": 1},
    "liquidity": {"usd": 9876543.21, "base": 1, "quote": 2},
    "priceChange": {"h24": -1.2},
}


class TestDexPairSchema:
    def test_aliases(self):
        pair = DexPair.model_validate(PAIR_PAYLOAD)
        assert pair.chain_id == "bsc"
        assert pair.dex_id == "pancakeswap"
        assert pair.pair_address == "0xPool"
        assert pair.base_token.symbol == "CAKE"
        assert pair.price_usd == Decimal("2.315")
        assert isinstance(pair.liquidity.usd, Decimal)
        assert float(pair.liquidity.usd) == 9876543.21

    def test_optional_blocks(self):
        payload = {k: v for k, v in PAIR_PAYLOAD.items() if k not in ("volume", "liquidity", "labels", "priceUsd")}
        pair = DexPair.model_validate(payload)
        assert pair.volume is None
        assert pair.liquidity is None
        assert pair.labels is None
        assert pair.price_usd is None

    def test_null_pairs(self):
        assert DexTokenPairsResponse.model_validate({"pairs": None}).pairs is None

    def test_negative_liquidity_rejected(self):
        bad = dict(PAIR_PAYLOAD, liquidity={"usd": -5})
        with pytest.raises(UpstreamMalformedError):
            parse_payload(DexTokenPairsResponse, {"pairs": [bad]}, source="dexscreener")


def _position_payload(**overrides):
    payload = {
        "id": "101",
        "owner": "0xowner",
        "tickLower": {"tickIdx": "-100"},
        "tickUpper": {"tickIdx": "100"},
        "liquidity": "123456789012345678901234567890",
        "collectedFeesToken0": "1.5",
        "collectedFeesToken1": "0",
    }
    payload.update(overrides)
    return payload


class TestSubgraphSchema:
    def test_position_parses_bigint_strings(self):
        pos = SubgraphPosition.model_validate(_position_payload())
        assert pos.tick_lower.tick_idx == -100
        assert pos.tick_upper.tick_idx == 100
        assert pos.liquidity == "123456789012345678901234567890"
        assert pos.collected_fees_token0 == Decimal("1.5")

    def test_liquidity_int_kept_as_string(self):
        assert SubgraphPosition.model_validate(_position_payload(liquidity=42)).liquidity == "42"

    def test_liquidity_not_integer(self):
        with pytest.raises(UpstreamMalformedError):
            parse_payload(SubgraphPosition, _position_payload(liquidity="1.5e3"), source="subgraph")

    def test_missing_fee_counters_default_zero(self):
        payload = _position_payload()
        del payload["collectedFeesToken0"], payload["collectedFeesToken1"]
        pos = SubgraphPosition.model_validate(payload)
        assert pos.collected_fees_token0 == 0

    def test_pool_data(self):
        data = SubgraphPositionsData.model_validate({
            "pool": {
                "tick": "-2000",
                "token0": {"symbol": "CAKE", "decimals": "18"},
                "token1": {"symbol": "WBNB", "decimals": "18"},
                "feeTier": "2500",
            },
            "positions": [_position_payload()],
        })
        assert data.pool.tick == -2000
        assert data.pool.fee_tier == 2500
        assert data.pool.token0.decimals == 18
        assert len(data.positions) == 1

    def test_decimals_out_of_range(self):
        payload = {
            "pool": {"tick": 0, "token0": {"decimals": 300}, "token1": {"decimals": 18}},
            "positions": [],
        }
        with pytest.raises(UpstreamMalformedError) as exc_info:
            parse_payload(SubgraphPositionsData, payload, source="subgraph")
        assert exc_info.value.source == "subgraph"


# ═══════════════════════════════════════════════════════════════════════════
# 3. dex_registry.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.dex_registry import (
    DEX_REGISTRY,
    resolve_platform,
    get_subgraph_endpoint,
    get_subgraph_networks,
    get_factory_address,
    get_position_manager_address,
    get_dex_display_name,
    get_dex_icon,
)


class TestDexRegistry:
    @pytest.mark.parametrize("platform,slug", [
        ("pancakeswap", "pancakeswap_v3"),
        ("PancakeSwap", "pancakeswap_v3"),
        ("uniswap", "uniswap_v3"),
        ("sushiswap", "sushiswap_v3"),
        ("uniswap_v3", "uniswap_v3"),
    ])
    def test_resolve_platform(self, platform, slug):
        assert resolve_platform(platform) == slug

    @pytest.mark.parametrize("platform", ["raydium", "", None])
    def test_unknown_platform(self, platform):
        assert resolve_platform(platform) is None

    def test_subgraph_endpoint(self):
        url = get_subgraph_endpoint("pancakeswap", "BSC")
        assert url == DEX_REGISTRY["pancakeswap_v3"]["subgraphs"]["bsc"]

    def test_no_subgraph_on_network(self):
        assert get_subgraph_endpoint("pancakeswap", "ethereum") is None
        assert get_subgraph_endpoint("raydium", "solana") is None

    def test_subgraph_networks(self):
        networks = get_subgraph_networks()
        assert "bsc" in networks["pancakeswap_v3"]
        assert set(networks) == set(DEX_REGISTRY)

    def test_contract_addresses(self):
        assert get_position_manager_address("pancakeswap_v3", "bsc").startswith("0x46A15B0b")
        assert get_factory_address("uniswap_v3", "ethereum").startswith("0x1F98431c")

    def test_missing_deployment(self):
        assert get_position_manager_address("sushiswap_v3", "bsc") is None
        assert get_factory_address("nope", "bsc") is None

    @pytest.mark.parametrize("slug", list(DEX_REGISTRY))
    def test_addresses_are_checksummed_hex(self, slug):
        for contracts in DEX_REGISTRY[slug]["networks"].values():
            for addr in contracts.values():
                assert re.fullmatch(r"0x[0-9a-fA-F]{40}", addr)

    def test_display_helpers(self):
        assert get_dex_display_name("uniswap_v3") == "Uniswap V3"
        assert get_dex_display_name("other") == "other"
        assert get_dex_icon("pancakeswap_v3") == "🥞"

    def test_registry_read_only(self):
        with pytest.raises(TypeError):
            DEX_REGISTRY["new_dex"] = {}


# ═══════════════════════════════════════════════════════════════════════════
# 4. dexscreener_client.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.dexscreener_client import DexScreenerClient


class TestDexScreenerClient:
    def _get(self, handler, token="0xCake"):
        return _run_with_http(handler, lambda http: DexScreenerClient(http=http).get_token_pairs(token))

    def test_success(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"schemaVersion": "1.0.0", "pairs": [PAIR_PAYLOAD]})

        pairs = self._get(handler)
        assert seen == ["https://api.dexscreener.com/latest/dex/tokens/0xCake"]
        assert len(pairs) == 1
        assert pairs[0].dex_id == "pancakeswap"

    def test_unknown_token_is_empty(self):
        assert self._get(lambda request: httpx.Response(200, json={"pairs": None})) == []

    def test_rate_limited(self):
        with pytest.raises(UpstreamUnavailableError, match="429"):
            self._get(lambda request: httpx.Response(429))

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_http_error(self, status):
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            self._get(lambda request: httpx.Response(status))
        assert exc_info.value.source == "dexscreener"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamUnavailableError, match="timed out"):
            self._get(handler)

    def test_non_json(self):
        with pytest.raises(UpstreamMalformedError):
            self._get(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    def test_schema_mismatch(self):
        with pytest.raises(UpstreamMalformedError):
            self._get(lambda request: httpx.Response(200, json={"pairs": [{"chainId": "bsc"}]}))

    def test_base_url_override(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            return httpx.Response(200, json={"pairs": []})

        _run_with_http(
            handler,
            lambda http: DexScreenerClient(http=http, base_url="http://mirror.local").get_token_pairs("0x1"),
        )
        assert seen == ["mirror.local"]


# ═══════════════════════════════════════════════════════════════════════════
# 5. subgraph_client.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.subgraph_client import POOL_POSITIONS_QUERY, SubgraphClient

SUBGRAPH_URL = "https://subgraph.local/pancake"


class TestSubgraphClient:
    def _fetch(self, handler, pool="0xABCDEF", first=None):
        return _run_with_http(
            handler,
            lambda http: SubgraphClient(http=http).fetch_pool_positions(SUBGRAPH_URL, pool, first=first),
        )

    def test_request_shape(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"pool": None, "positions": []}})

        self._fetch(handler, first=3)
        assert bodies[0]["query"] == POOL_POSITIONS_QUERY
        assert bodies[0]["variables"] == {"poolAddr": "0xabcdef", "first": 3}

    def test_default_page_size(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {"pool": None, "positions": []}})

        self._fetch(handler)
        assert bodies[0]["variables"]["first"] == 10

    def test_parsed_result(self):
        data = {
            "pool": {
                "tick": 10,
                "token0": {"symbol": "CAKE", "decimals": 18},
                "token1": {"symbol": "WBNB", "decimals": 18},
                "feeTier": 2500,
            },
            "positions": [_position_payload()],
        }
        parsed = self._fetch(lambda request: httpx.Response(200, json={"data": data}))
        assert parsed.pool.tick == 10
        assert parsed.positions[0].id == "101"

    def test_graphql_errors(self):
        body = {"errors": [{"message": "indexing_error"}]}
        with pytest.raises(UpstreamUnavailableError, match="indexing_error"):
            self._fetch(lambda request: httpx.Response(200, json=body))

    def test_http_error(self):
        with pytest.raises(UpstreamUnavailableError, match="502"):
            self._fetch(lambda request: httpx.Response(502))

    def test_missing_data(self):
        with pytest.raises(UpstreamMalformedError):
            self._fetch(lambda request: httpx.Response(200, json={"data": None}))

    def test_non_object_body(self):
        with pytest.raises(UpstreamMalformedError):
            self._fetch(lambda request: httpx.Response(200, json=[1, 2]))

    def test_schema_mismatch(self):
        body = {"data": {"pool": None, "positions": [{"id": "1"}]}}
        with pytest.raises(UpstreamMalformedError):
            self._fetch(lambda request: httpx.Response(200, json=body))


# ═══════════════════════════════════════════════════════════════════════════
# 6. central_config.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.central_config import (
    PROJECT_NAME,
    PROJECT_VERSION,
    DexScreenerAPI,
    EngineSettings,
    config,
)


class TestCentralConfig:
    def test_project_version_non_empty(self):
        assert re.match(r"\d+\.\d+\.\d+", PROJECT_VERSION)

    def test_project_name(self):
        assert PROJECT_NAME == "LP Lens"

    def test_default_base_url(self):
        assert DexScreenerAPI().BASE_URL == "https://api.dexscreener.com"

    def test_token_pairs_url(self):
        url = DexScreenerAPI.get_token_pairs_url("0xTOKEN")
        assert url == "https://api.dexscreener.com/latest/dex/tokens/0xTOKEN"

    def test_engine_defaults(self):
        engine = EngineSettings()
        assert engine.TOP_POOLS == 5
        assert engine.PRICE_DECIMALS == 6
        assert engine.MAX_CONCURRENCY == 8
        assert config.subgraph.POSITIONS_PAGE_SIZE == 10

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            config.api.TIMEOUT_SECONDS = 1


# ═══════════════════════════════════════════════════════════════════════════
# 7. models.py / errors.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.errors import (
    InvalidInputError,
    LPLensError,
    NoPoolsFoundError,
    PositionLookupFailedError,
    UpstreamError,
)
from lp_lens.models import PoolSummary, TokenMeta


def _summary(**overrides):
    fields = dict(
        address="0xpool",
        platform="pancakeswap",
        network="bsc",
        token0=TokenMeta("0xa", "CAKE"),
        token1=TokenMeta("0xb", "WBNB"),
    )
    fields.update(overrides)
    return PoolSummary(**fields)


class TestPoolSummary:
    def test_pair(self):
        assert _summary().pair == "CAKE/WBNB"

    @pytest.mark.parametrize("labels,expected", [
        (("v3",), True), (("V3",), True), (("v2",), False), ((), False),
    ])
    def test_concentrated(self, labels, expected):
        assert _summary(labels=labels).is_concentrated is expected

    def test_version_label(self):
        assert _summary(labels=("v3",)).version == "V3"
        assert _summary().version == "V2"

    def test_negative_liquidity_rejected(self):
        with pytest.raises(ValueError):
            _summary(liquidity_usd=Decimal("-1"))

    def test_immutable(self):
        with pytest.raises(FrozenInstanceError):
            _summary().address = "0xother"


class TestErrors:
    def test_invalid_input_is_value_error(self):
        assert issubclass(InvalidInputError, ValueError)
        assert issubclass(InvalidInputError, LPLensError)

    def test_upstream_source(self):
        err = UpstreamUnavailableError("down", source="subgraph")
        assert isinstance(err, UpstreamError)
        assert err.source == "subgraph"

    def test_no_pools_message(self):
        err = NoPoolsFoundError("0xdead")
        assert err.token_address == "0xdead"
        assert "0xdead" in str(err)

    def test_lookup_failed(self):
        err = PositionLookupFailedError(42, "execution reverted")
        assert err.position_id == 42
        assert str(err) == "Position 42 lookup failed: execution reverted"


# ═══════════════════════════════════════════════════════════════════════════
# 8. run.py / commands.py
# ═══════════════════════════════════════════════════════════════════════════

from lp_lens.commands import cmd_info
from run import create_parser, main


class TestCreateParser:
    @pytest.mark.parametrize("argv,command", [
        (["analyze", "0xtoken"], "analyze"),
        (["pools", "0xtoken"], "pools"),
        (["position", "12345"], "position"),
        (["info"], "info"),
    ])
    def test_subcommands(self, argv, command):
        assert create_parser().parse_args(argv).command == command

    def test_analyze_defaults(self):
        args = create_parser().parse_args(["analyze", "0xtoken"])
        assert args.network is None
        assert args.top is None
        assert args.invert is False
        assert args.json is False

    def test_position_defaults(self):
        args = create_parser().parse_args(["position", "99"])
        assert args.position_id == "99"
        assert args.network == "bsc"
        assert args.dex == "pancakeswap_v3"

    def test_verbose_flag(self):
        assert create_parser().parse_args(["-v", "info"]).verbose is True

    def test_version_flag(self):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0


class TestMain:
    def test_info(self, capsys):
        assert main(["info"]) == 0
        assert "LP Lens" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 0

    def test_engine_error_exits_1(self, capsys):
        failing = AsyncMock(side_effect=UpstreamUnavailableError("DEXScreener down", source="dexscreener"))
        with patch("run.cmd_pools", failing):
            assert main(["pools", "0xtoken"]) == 1
        assert "DEXScreener down" in capsys.readouterr().err

    def test_analyze_json_empty(self, capsys):
        with patch("aggregator.aggregate", AsyncMock(return_value=[])) as agg:
            assert main(["analyze", "0xtoken", "--json", "--top", "3", "--invert"]) == 0
        assert json.loads(capsys.readouterr().out) == []
        agg.assert_awaited_once_with("0xtoken", network=None, top_n=3, invert_prices=True)

    def test_analyze_no_positions_message(self, capsys):
        with patch("aggregator.aggregate", AsyncMock(return_value=[])):
            assert main(["analyze", "0xtoken"]) == 0
        assert "none returned indexed positions" in capsys.readouterr().out

    def test_no_pools_exits_1(self, capsys):
        with patch("aggregator.aggregate", AsyncMock(side_effect=NoPoolsFoundError("0xtoken"))):
            assert main(["analyze", "0xtoken"]) == 1
        assert "No pools found for token 0xtoken" in capsys.readouterr().err

    def test_invalid_position_exits_1(self, capsys):
        assert main(["position", "not-a-number"]) == 1
        assert "non-negative integer" in capsys.readouterr().err


class TestCmdInfo:
    def test_lists_dexes(self, capsys):
        cmd_info()
        output = capsys.readouterr().out
        assert "LP Lens" in output
        assert "PancakeSwap V3" in output
