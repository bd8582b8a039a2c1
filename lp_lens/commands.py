"""
CLI command handlers — extracted from run.py for maintainability.

Each cmd_* function handles one CLI subcommand and prints its result.
Engine errors are not caught here; run.py turns any LPLensError into a
one-line message and exit code 1.
"""

import json
from dataclasses import asdict
from typing import List, Optional

from lp_lens.central_config import PROJECT_NAME, PROJECT_VERSION, config
from lp_lens.dex_registry import DEX_REGISTRY, get_dex_display_name, get_dex_icon
from lp_lens.models import PoolPositions, ResolvedPosition
from lp_lens.rpc_helpers import RPC_URLS


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _short(addr: Optional[str], keep: int = 10) -> str:
    if not addr:
        return "—"
    return addr if len(addr) <= keep + 4 else f"{addr[:keep]}…{addr[-4:]}"


def cmd_info() -> None:
    """Display version and supported DEX coverage."""
    print(f"\n📊 {PROJECT_NAME} v{PROJECT_VERSION}")
    print("=" * 55)
    print("🔗 Protocol   : Uniswap V3 & compatible forks (concentrated liquidity)")
    print("📡 Pool Data  : DEXScreener API (real-time, free, no key)")
    print("📇 Positions  : V3 subgraphs (The Graph)")
    print(f"🌐 On-Chain   : {', '.join(n.title() for n in RPC_URLS)}")
    print()
    print("🔄 Supported DEXes (V3-compatible):")
    for slug, dex in DEX_REGISTRY.items():
        subgraphs = ", ".join(dex["subgraphs"]) or "none"
        chains = ", ".join(dex["networks"])
        print(f"   {dex['icon']} {dex['name']:<16} subgraphs: {subgraphs:<14} on-chain: {chains}")
    print()
    print("🔗 Quick Start:")
    print("   python run.py analyze <token>")
    print("   python run.py pools   <token> --network bsc")
    print("   python run.py position <tokenId> --dex pancakeswap_v3")
    print()
    print("📚 References:")
    print("   Uniswap V3 Whitepaper : https://uniswap.org/whitepaper-v3.pdf")
    print("   DEXScreener API       : https://docs.dexscreener.com/api/reference")


async def cmd_analyze(
    token: str,
    network: Optional[str] = None,
    top: Optional[int] = None,
    invert: bool = False,
    as_json: bool = False,
) -> None:
    """Ranked pools of a token with their largest positions."""
    from aggregator import aggregate

    results: List[PoolPositions] = await aggregate(
        token, network=network, top_n=top, invert_prices=invert
    )

    if as_json:
        _print_json([dict(asdict(r), quote_label=r.quote_label) for r in results])
        return

    print(f"\n🔍 Liquidity positions for {token}" + (f" on {network.title()}" if network else ""))
    print("=" * 72)
    if not results:
        print("  Pools found, but none returned indexed positions.")
        print("  💡 Only pools on DEXes with a supported subgraph are indexed (see: info)")
        return

    for rank, entry in enumerate(results, 1):
        pool = entry.pool
        quote = entry.quote_label or "raw"
        fee = f"  fee {entry.fee_tier / 10_000:.2f}%" if entry.fee_tier is not None else ""
        print(
            f"\n  #{rank} {pool.pair}  {pool.platform} · {pool.network}  "
            f"liq ${pool.liquidity_usd:,.2f}  tick {entry.current_tick}{fee}"
        )
        if entry.token0 is not None and entry.token1 is not None:
            print(f"     Pool order: token0 {entry.token0.symbol} · token1 {entry.token1.symbol}")
        print(f"     Pool: {pool.address}")
        print(f"     {'ID':>10s} {'Owner':>16s} {'Liquidity':>24s}  {'Range (' + quote + ')'}")
        for p in entry.positions:
            status = "🟢" if p.in_range else "🔴"
            print(
                f"     {p.id:>10s} {_short(p.owner):>16s} {p.liquidity:>24s}  "
                f"{status} {p.price_range.min_price} – {p.price_range.max_price}"
            )


async def cmd_pools(token: str, network: Optional[str] = None, as_json: bool = False) -> None:
    """Top pools of any version with suggested market-making ranges."""
    from pool_scout import PoolScout, format_pools

    pools = await PoolScout().summarize_pools(token, network=network)

    if as_json:
        _print_json([dict(asdict(p), version=p.version) for p in pools])
        return

    print(f"\n🔭 Pools for {token}" + (f" on {network.title()}" if network else ""))
    print("=" * 72)
    print(format_pools(pools))
    print("\n🔗 Data: https://dexscreener.com")


def _print_resolved(r: ResolvedPosition, invert: bool) -> None:
    p = r.position
    quote = f"{r.token0.symbol} per {r.token1.symbol}" if invert else \
        f"{r.token1.symbol} per {r.token0.symbol}"
    print("\n" + "=" * 60)
    print(f"  Position #{p.id} — {r.pair}")
    print(f"  DEX: {get_dex_icon(r.dex_slug)} {get_dex_display_name(r.dex_slug)}")
    print(f"  Network: {r.network.title()} | Pool: {_short(r.pool_address, 16)}")
    print("=" * 60)
    print(f"  Status     : {'🟢 In Range' if p.in_range else '🔴 Out of Range'}")
    print(f"  Fee Tier   : {r.fee_tier / 10_000:.2f}%")
    print(f"  Ticks      : {p.tick_lower} → {p.tick_upper} (current {r.current_tick})")
    print(f"  Range      : {p.price_range.min_price} – {p.price_range.max_price} {quote}")
    print(f"  Liquidity  : {p.liquidity}")
    print(f"  Owner      : {p.owner}")
    print()
    print("  Checkpointed fees (excludes fees accrued since last update):")
    print(f"    {r.token0.symbol}: {r.tokens_owed0}")
    print(f"    {r.token1.symbol}: {r.tokens_owed1}")
    print("=" * 60)


async def cmd_position(
    position_id: str,
    network: Optional[str] = None,
    dex: Optional[str] = None,
    invert: bool = False,
    as_json: bool = False,
) -> None:
    """Resolve a single position NFT from chain."""
    from position_reader import resolve_position

    resolved = await resolve_position(
        position_id,
        network=network or config.engine.DEFAULT_NETWORK,
        dex_slug=dex or config.engine.DEFAULT_DEX,
        invert_prices=invert,
    )

    if as_json:
        _print_json(dict(asdict(resolved), pair=resolved.pair))
        return
    _print_resolved(resolved, invert)
