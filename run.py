#!/usr/bin/env python3
"""
LP Lens -- Liquidity Position Aggregation
============================================

Who provides liquidity for a token, and where?
Supports: Uniswap V3, PancakeSwap V3, SushiSwap V3.

Usage:
  python run.py analyze  <token>                        Top pools + largest positions
  python run.py analyze  <token> --network bsc --top 3  Filter by network, limit pools
  python run.py pools    <token>                        Pool summary + suggested ranges
  python run.py position <tokenId> --dex pancakeswap_v3 Resolve one position from chain
  python run.py info                                    Version + DEX support

Sources:
  Uniswap V3 Whitepaper : https://uniswap.org/whitepaper-v3.pdf
  DEXScreener API       : https://docs.dexscreener.com/api/reference
  V3 Subgraph schema    : https://github.com/Uniswap/v3-subgraph
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

# ── Imports ───────────────────────────────────────────────────────────────

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from lp_lens.central_config import PROJECT_VERSION, config
from lp_lens.commands import cmd_analyze, cmd_info, cmd_pools, cmd_position
from lp_lens.errors import LPLensError


# ── CLI Parser ────────────────────────────────────────────────────────────


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lp-lens",
        description=f"LP Lens v{PROJECT_VERSION} — Liquidity Position Aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py analyze  0x0E09…                         Positions in the top V3 pools
  python run.py analyze  0x0E09… --invert --json         token1 per token0 prices, JSON
  python run.py pools    0x0E09… --network bsc           All-version pool summary
  python run.py position 123456 --network bsc --dex pancakeswap_v3
  python run.py info                                     System overview + DEX support

Prices are quoted as token1 per token0 in the order the source reports the
tokens. Use --invert to quote token0 per token1 instead.
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"LP Lens v{PROJECT_VERSION}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging to stderr"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    analyze_p = sub.add_parser(
        "analyze", help="Top V3 pools of a token with their largest positions"
    )
    analyze_p.add_argument("token", help="Token contract address")
    analyze_p.add_argument(
        "--network",
        type=str,
        default=None,
        help="Filter pools by network, e.g. bsc, ethereum (default: all)",
    )
    analyze_p.add_argument(
        "--top",
        type=int,
        default=None,
        help=f"Max pools to analyze (default: {config.engine.TOP_POOLS})",
    )
    analyze_p.add_argument("--invert", action="store_true", help="Quote token0 per token1")
    analyze_p.add_argument("--json", action="store_true", help="Machine-readable output")

    pools_p = sub.add_parser("pools", help="Pool summary with suggested ranges (DEXScreener)")
    pools_p.add_argument("token", help="Token contract address")
    pools_p.add_argument(
        "--network", type=str, default=None, help="Filter pools by network"
    )
    pools_p.add_argument("--json", action="store_true", help="Machine-readable output")

    position_p = sub.add_parser("position", help="Resolve one V3 position NFT from chain")
    position_p.add_argument("position_id", help="V3 position NFT tokenId (uint256)")
    position_p.add_argument(
        "--network",
        type=str,
        default=config.engine.DEFAULT_NETWORK,
        help=f"Network: bsc, ethereum, arbitrum, polygon, base, optimism (default: {config.engine.DEFAULT_NETWORK})",
    )
    position_p.add_argument(
        "--dex",
        type=str,
        default=config.engine.DEFAULT_DEX,
        help=f"DEX: uniswap_v3, pancakeswap_v3, sushiswap_v3 (default: {config.engine.DEFAULT_DEX})",
    )
    position_p.add_argument("--invert", action="store_true", help="Quote token0 per token1")
    position_p.add_argument("--json", action="store_true", help="Machine-readable output")

    sub.add_parser("info", help="System & DEX support info")

    return parser


# ── Main ──────────────────────────────────────────────────────────────────


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "info":
        cmd_info()
        return 0

    try:
        if args.command == "analyze":
            asyncio.run(
                cmd_analyze(
                    token=args.token,
                    network=args.network,
                    top=args.top,
                    invert=args.invert,
                    as_json=args.json,
                )
            )
            return 0
        if args.command == "pools":
            asyncio.run(cmd_pools(token=args.token, network=args.network, as_json=args.json))
            return 0
        if args.command == "position":
            asyncio.run(
                cmd_position(
                    position_id=args.position_id,
                    network=args.network,
                    dex=args.dex,
                    invert=args.invert,
                    as_json=args.json,
                )
            )
            return 0
    except LPLensError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n❌ Cancelled.")
        sys.exit(130)
