"""Pydantic models for upstream payloads (DEXScreener and V3 subgraphs).

Every upstream response is parsed through these models before any field is
read, so a schema mismatch fails fast as ``UpstreamMalformedError`` instead
of leaking missing keys into the engine.

API Documentation:
  DEXScreener: https://docs.dexscreener.com/api/reference
  Uniswap V3 subgraph: https://github.com/Uniswap/v3-subgraph/blob/main/schema.graphql
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lp_lens.errors import UpstreamMalformedError


# ── DEXScreener ─────────────────────────────────────────────────────────


class DexToken(BaseModel):
    """Base or quote token of a pair. DEXScreener does not report decimals."""

    model_config = ConfigDict(extra="ignore")

    address: str
    name: str | None = None
    symbol: str | None = None


class DexVolume(BaseModel):
    model_config = ConfigDict(extra="ignore")

    h24: Decimal | None = Field(default=None, ge=0)


class DexLiquidity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    usd: Decimal | None = Field(default=None, ge=0)


class DexPair(BaseModel):
    """Trading pair from the token lookup endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    chain_id: str = Field(alias="chainId")
    dex_id: str = Field(alias="dexId")
    pair_address: str = Field(alias="pairAddress")
    base_token: DexToken = Field(alias="baseToken")
    quote_token: DexToken = Field(alias="quoteToken")
    price_usd: Decimal | None = Field(default=None, alias="priceUsd")
    volume: DexVolume | None = None
    liquidity: DexLiquidity | None = None
    labels: list[str] | None = None
    url: str | None = None


class DexTokenPairsResponse(BaseModel):
    """``GET /latest/dex/tokens/{address}``. ``pairs`` is null for unknown tokens."""

    model_config = ConfigDict(extra="ignore")

    pairs: list[DexPair] | None = None


# ── V3 subgraph ─────────────────────────────────────────────────────────


class SubgraphToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    symbol: str | None = None
    decimals: int = Field(ge=0, le=255)


class SubgraphPool(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Null until the pool has been initialized
    tick: int | None = None
    token0: SubgraphToken
    token1: SubgraphToken
    fee_tier: int | None = Field(default=None, alias="feeTier")


class SubgraphTick(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tick_idx: int = Field(alias="tickIdx")


class SubgraphPosition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    owner: str | None = None
    tick_lower: SubgraphTick = Field(alias="tickLower")
    tick_upper: SubgraphTick = Field(alias="tickUpper")
    liquidity: str
    collected_fees_token0: Decimal = Field(default=Decimal(0), alias="collectedFeesToken0")
    collected_fees_token1: Decimal = Field(default=Decimal(0), alias="collectedFeesToken1")

    @field_validator("liquidity", mode="before")
    @classmethod
    def _integer_string(cls, value):
        # BigInt arrives as a string; tolerate ints but keep the string form
        text = str(value).strip()
        if not text.lstrip("-").isdigit():
            raise ValueError(f"liquidity is not an integer: {value!r}")
        return text


class SubgraphPositionsData(BaseModel):
    """``data`` block of the pool + positions query."""

    model_config = ConfigDict(extra="ignore")

    pool: SubgraphPool | None = None
    positions: list[SubgraphPosition] = Field(default_factory=list)


# ── Helpers ─────────────────────────────────────────────────────────────


def parse_payload(model: type[BaseModel], payload, source: str):
    """Validate a decoded JSON payload, mapping failures to UpstreamMalformedError."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamMalformedError(
            f"{source} response does not match schema: {exc.error_count()} error(s)",
            source=source,
        ) from exc
