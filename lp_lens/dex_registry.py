#!/usr/bin/env python3
"""
DEX Registry — V3 Subgraph Endpoints and Contract Addresses
============================================================

Maps each supported V3-compatible DEX to:
  • the DEXScreener ``dexId`` values that identify it in market data,
  • its position-indexing subgraph per network,
  • its NonfungiblePositionManager and Factory contracts per network.

The registry is static and read-only at runtime.

Compatibility Rules:
  ✅ Compatible (same positions() ABI and subgraph schema as Uniswap V3):
     - Uniswap V3
     - PancakeSwap V3
     - SushiSwap V3

Contract Address Sources:
  Uniswap V3  : https://docs.uniswap.org/contracts/v3/reference/deployments/
  PancakeSwap : https://developer.pancakeswap.finance/contracts/v3/addresses
  SushiSwap   : https://docs.sushi.com/docs/Products/V3%20AMM/Periphery/Deployment%20Addresses
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

# ── DEX Registry ────────────────────────────────────────────────────────
#
# Structure:
#   DEX_REGISTRY[dex_slug] = {
#       "name": str,                       # Display name
#       "icon": str,                       # Emoji for CLI
#       "dexscreener_ids": tuple,          # DEXScreener dexId values
#       "subgraphs": {network: url},       # Position-indexing endpoints
#       "networks": {
#           "network_slug": {
#               "position_manager": "0x...",
#               "factory": "0x...",
#           }
#       }
#   }

DEX_REGISTRY: Mapping[str, dict] = MappingProxyType({
    # ── Uniswap V3 ─────────────────────────────────────────────────
    "uniswap_v3": {
        "name": "Uniswap V3",
        "icon": "🦄",
        "dexscreener_ids": ("uniswap",),
        "subgraphs": {
            "bsc": "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v3-bsc",
            "ethereum": "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v3",
        },
        "networks": {
            "ethereum": {
                "position_manager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
                "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
            },
            "arbitrum": {
                "position_manager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
                "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
            },
            "polygon": {
                "position_manager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
                "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
            },
            "optimism": {
                "position_manager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
                "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
            },
            "base": {
                "position_manager": "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1",
                "factory": "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
            },
            "bsc": {
                "position_manager": "0x7b8A01B39D58278b5DE7e48c8449c9f4F5170613",
                "factory": "0xdB1d10011AD0Ff90774D0C6Bb92e5C5c8b4461F7",
            },
        },
    },
    # ── PancakeSwap V3 ──────────────────────────────────────────────
    # Fork of Uniswap V3 with identical positions() ABI.
    "pancakeswap_v3": {
        "name": "PancakeSwap V3",
        "icon": "🥞",
        "dexscreener_ids": ("pancakeswap",),
        "subgraphs": {
            "bsc": "https://api.thegraph.com/subgraphs/name/pancakeswap/exchange-v3-bsc",
        },
        "networks": {
            "ethereum": {
                "position_manager": "0x46A15B0b27311cedF172AB29E4f4766fbE7F4364",
                "factory": "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
            },
            "bsc": {
                "position_manager": "0x46A15B0b27311cedF172AB29E4f4766fbE7F4364",
                "factory": "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
            },
            "arbitrum": {
                "position_manager": "0x427bF5b37357632377eCbEC9de3626C71A5396c1",
                "factory": "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
            },
            "base": {
                "position_manager": "0x46A15B0b27311cedF172AB29E4f4766fbE7F4364",
                "factory": "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
            },
        },
    },
    # ── SushiSwap V3 ────────────────────────────────────────────────
    # DIFFERENT addresses per chain.
    "sushiswap_v3": {
        "name": "SushiSwap V3",
        "icon": "🍣",
        "dexscreener_ids": ("sushiswap",),
        "subgraphs": {
            "bsc": "https://api.thegraph.com/subgraphs/name/sushi-v3/v3-bsc",
        },
        "networks": {
            "ethereum": {
                "position_manager": "0x2214A42d8e2A1d20635C2cb0664422c528b6A432",
                "factory": "0xbACEB8eC6b9355Dfc0269C18bac9d6E2Bdc29C4F",
            },
            "arbitrum": {
                "position_manager": "0xF0cBce1942a68BEB3d1b73F0dd86c8DCc363eF49",
                "factory": "0x1af415a1EbA07a4986a52B6f2e7dE7003D82231e",
            },
            "polygon": {
                "position_manager": "0xb7402ee99F0A008e461098AC3a27F4957Df89a40",
                "factory": "0x917933899c6a5f8E37F31E19f92CdbFf7e8ff0e2",
            },
            "base": {
                "position_manager": "0x80C7DD17B01855a6D2347444a0FCC36136a314de",
                "factory": "0xc35DADB65012eC5796536bD9864eD8773aBc74C4",
            },
            "optimism": {
                "position_manager": "0x1af415a1EbA07a4986a52B6f2e7dE7003D82231e",
                "factory": "0x9c6522117e2ed1fE5bdb72bb0eD5E3f2bdE7DBe0",
            },
        },
    },
})

# DEXScreener dexId → registry slug
_PLATFORM_INDEX: Mapping[str, str] = MappingProxyType({
    dex_id: slug
    for slug, dex in DEX_REGISTRY.items()
    for dex_id in dex["dexscreener_ids"]
})


# ── Helper Functions ────────────────────────────────────────────────────


def resolve_platform(platform: str) -> Optional[str]:
    """Registry slug for a DEXScreener ``dexId`` (e.g. "pancakeswap" → "pancakeswap_v3")."""
    if not platform:
        return None
    key = platform.strip().lower()
    if key in DEX_REGISTRY:
        return key
    return _PLATFORM_INDEX.get(key)


def get_subgraph_endpoint(platform: str, network: str) -> Optional[str]:
    """Position-indexing endpoint for a platform on a network, or None if unsupported."""
    slug = resolve_platform(platform)
    if not slug:
        return None
    return DEX_REGISTRY[slug]["subgraphs"].get((network or "").lower())


def get_subgraph_networks() -> Dict[str, List[str]]:
    """Networks with an indexing endpoint, per DEX slug."""
    return {slug: list(dex["subgraphs"].keys()) for slug, dex in DEX_REGISTRY.items()}


def get_factory_address(dex_slug: str, network: str) -> Optional[str]:
    """Get the Factory address for a specific DEX + network."""
    dex = DEX_REGISTRY.get(dex_slug)
    if not dex or network not in dex.get("networks", {}):
        return None
    return dex["networks"][network]["factory"]


def get_position_manager_address(dex_slug: str, network: str) -> Optional[str]:
    """Get the NonfungiblePositionManager address for a specific DEX + network."""
    dex = DEX_REGISTRY.get(dex_slug)
    if not dex or network not in dex.get("networks", {}):
        return None
    return dex["networks"][network]["position_manager"]


def get_dex_display_name(dex_slug: str) -> str:
    """Get display name for a DEX slug."""
    dex = DEX_REGISTRY.get(dex_slug)
    return dex["name"] if dex else dex_slug


def get_dex_icon(dex_slug: str) -> str:
    """Get emoji icon for a DEX slug."""
    dex = DEX_REGISTRY.get(dex_slug)
    return dex["icon"] if dex else "🔄"
