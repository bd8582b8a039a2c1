"""
Project Configuration — API endpoints, engine limits, version
==============================================================

Contains DEXScreener, subgraph and JSON-RPC settings plus the engine's
ranking and concurrency limits. Every component takes these as defaults
and accepts explicit overrides in its constructor.

Source: https://docs.dexscreener.com/api/reference
"""

import re
from dataclasses import dataclass
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

# Version: single source of truth is pyproject.toml
try:
    PROJECT_VERSION = version("lp-lens")
except PackageNotFoundError:
    # Dev / CI: package not installed, read pyproject.toml directly
    _toml = Path(__file__).resolve().parent.parent / "pyproject.toml"
    _m = (
        re.search(r'version\s*=\s*"([^"]+)"', _toml.read_text())
        if _toml.exists()
        else None
    )
    PROJECT_VERSION = _m.group(1) if _m else "0.0.0-dev"
PROJECT_NAME = "LP Lens"


@dataclass(frozen=True)
class DexScreenerAPI:
    """Official DEXScreener API configuration."""

    BASE_URL: str = "https://api.dexscreener.com"

    # All pairs that contain a given token, across chains
    TOKENS_ENDPOINT: str = "/latest/dex/tokens"

    TIMEOUT_SECONDS: float = 15

    # Pair labels marking concentrated-liquidity pools
    CONCENTRATED_LABELS: frozenset = frozenset({"v3"})

    @classmethod
    def get_token_pairs_url(cls, token_address: str, base_url: str = None) -> str:
        """URL listing every pair that trades a token."""
        return f"{base_url or cls.BASE_URL}{cls.TOKENS_ENDPOINT}/{token_address}"


@dataclass(frozen=True)
class SubgraphAPI:
    """Position-indexing (The Graph) settings."""

    TIMEOUT_SECONDS: float = 20

    # Top-K positions requested per pool, by liquidity descending
    POSITIONS_PAGE_SIZE: int = 10


@dataclass(frozen=True)
class RpcAPI:
    """JSON-RPC settings for on-chain reads."""

    TIMEOUT_SECONDS: float = 20


@dataclass(frozen=True)
class EngineSettings:
    """Ranking, precision and fan-out limits."""

    TOP_POOLS: int = 5
    SUMMARY_TOP_POOLS: int = 10
    PRICE_DECIMALS: int = 6
    MAX_CONCURRENCY: int = 8
    DEFAULT_NETWORK: str = "bsc"
    DEFAULT_DEX: str = "pancakeswap_v3"


# Unified configuration
class LPLensConfig:
    """Unified engine configuration."""

    api = DexScreenerAPI()
    subgraph = SubgraphAPI()
    rpc = RpcAPI()
    engine = EngineSettings()


# Global instance
config = LPLensConfig()
