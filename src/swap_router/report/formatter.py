"""Rich console and JSON formatting for quotes and pools."""

from __future__ import annotations

from typing import Any

from rich.columns import Columns
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..domain import LiquidityPool, OptimalRoute, RouteSegment


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _format_impact(impact: float) -> str:
    style = "green" if impact < 1 else "yellow" if impact < 3 else "red"
    return f"[{style}]{impact:.2f}%[/]"


def _segment_dict(segment: RouteSegment) -> dict[str, Any]:
    return {
        "tokenIn": segment.token_in.address,
        "tokenOut": segment.token_out.address,
        "inputAmount": str(segment.input_amount),
        "outputAmount": str(segment.output_amount),
        "priceImpact": segment.price_impact,
        "pairAddress": segment.pool.pair_address,
        "provider": segment.pool.provider.value,
        "path": list(segment.path_addresses),
    }


def route_to_dict(route: OptimalRoute) -> dict[str, Any]:
    """JSON-friendly view of a route. Amounts are strings to keep precision."""
    return {
        "kind": route.kind,
        "tokenIn": route.token_in.address,
        "tokenOut": route.token_out.address,
        "requestedAmount": str(route.requested_amount),
        "inputAmount": str(route.input_amount),
        "expectedOutput": str(route.expected_output),
        "priceImpact": route.price_impact,
        "isSplit": route.is_split,
        "paths": [list(path) for path in route.paths],
        "segments": [
            {
                "percentage": str(leg.percentage),
                "inputAmount": str(leg.input_amount),
                "outputAmount": str(leg.output_amount),
                "priceImpact": leg.price_impact,
                "hops": [_segment_dict(hop) for hop in leg.hops],
            }
            for leg in route.segments
        ],
    }


def pool_to_dict(pool: LiquidityPool, recommended_slippage: float) -> dict[str, Any]:
    return {
        "pairAddress": pool.pair_address,
        "provider": pool.provider.value,
        "tokenA": pool.token_a.address,
        "tokenB": pool.token_b.address,
        "reserveA": str(pool.reserves.reserve_a),
        "reserveB": str(pool.reserves.reserve_b),
        "fee": pool.fee,
        "liquidity": pool.liquidity,
        "recommendedSlippage": recommended_slippage,
        "lastUpdated": pool.last_updated,
    }


def format_route_table(route: OptimalRoute, console: Console | None = None) -> None:
    """Print a quote summary and per-hop breakdown to stdout."""
    console = console or Console()
    token_in, token_out = route.token_in, route.token_out

    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="cyan")
    summary_table.add_row("Route", f"{route.kind}{' (split)' if route.is_split else ''}")
    summary_table.add_row("Requested", f"{route.requested_amount} {token_in.symbol}")
    summary_table.add_row("Routed", f"{route.input_amount} {token_in.symbol}")
    summary_table.add_row("Expected", f"{route.expected_output} {token_out.symbol}")
    summary_table.add_row("Price impact", _format_impact(route.price_impact))

    summary_panel = Panel(summary_table, title="[bold]Quote[/]", border_style="green")

    paths_table = Table(show_header=False, box=None, padding=(0, 1))
    paths_table.add_column("Share", style="dim", justify="right")
    paths_table.add_column("Path", style="cyan")
    for leg in route.segments:
        symbols = [leg.hops[0].token_in.symbol] + [hop.token_out.symbol for hop in leg.hops]
        paths_table.add_row(f"{leg.percentage}%", " > ".join(symbols))

    paths_panel = Panel(paths_table, title="[bold]Paths[/]", border_style="blue")

    hop_table = Table(expand=True, show_lines=False)
    hop_table.add_column("Hop", style="cyan", no_wrap=True)
    hop_table.add_column("Pool", style="dim")
    hop_table.add_column("In", justify="right")
    hop_table.add_column("Out", justify="right", style="green")
    hop_table.add_column("Impact", justify="right")

    for leg in route.segments:
        for hop in leg.hops:
            hop_table.add_row(
                f"{hop.token_in.symbol} > {hop.token_out.symbol}",
                _truncate_address(hop.pool.pair_address),
                f"{hop.input_amount}",
                f"{hop.output_amount}",
                _format_impact(hop.price_impact),
            )

    hop_panel = Panel(hop_table, title="[bold]Hops[/]", border_style="cyan")

    console.print(
        Panel(
            Group(Columns([summary_panel, paths_panel], equal=True, expand=True), "", hop_panel),
            title=f"[bold white]{token_in.symbol} > {token_out.symbol}[/]",
            border_style="white",
            padding=(1, 2),
        )
    )


def format_pool_table(
    pool: LiquidityPool, recommended_slippage: float, console: Console | None = None
) -> None:
    """Print reserves and analytics for a single pool."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Pair", pool.pair_address)
    table.add_row("Provider", pool.provider.value)
    table.add_row(
        f"Reserve {pool.token_a.symbol}", f"{pool.reserves.reserve_a:,}"
    )
    table.add_row(
        f"Reserve {pool.token_b.symbol}", f"{pool.reserves.reserve_b:,}"
    )
    table.add_row("Fee", f"{pool.fee:.2%}")
    table.add_row("Liquidity", f"{pool.liquidity:,.2f}")
    table.add_row("Recommended slippage", f"{recommended_slippage}%")
    table.add_row("Updated", pool.last_updated)

    console.print(
        Panel(
            table,
            title=f"[bold]{pool.token_a.symbol}/{pool.token_b.symbol}[/]",
            border_style="blue",
        )
    )
