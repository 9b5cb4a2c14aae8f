"""CLI entrypoint for swap-router."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer

from .domain import OptimalRoute, PoolProvider
from .errors import NoRouteFoundError, SwapRouterError
from .logger import setup_logging
from .report import format_pool_table, format_route_table, pool_to_dict, route_to_dict
from .settings import Network, RouterSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Quote token swaps across Uniswap V2 style pools.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("swap_router")


def _build_state(settings: RouterSettings) -> AppState:
    return AppState.build(settings, _build_logger())


def _parse_amount(raw: str) -> Decimal:
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise typer.BadParameter(f"'{raw}' is not a number", param_hint="AMOUNT")
    if not amount.is_finite() or amount <= 0:
        raise typer.BadParameter("amount must be a positive number", param_hint="AMOUNT")
    return amount


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [swap_router] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option(
            "--network",
            "-n",
            help="Network to use (mainnet, sepolia, or base).",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option(
            "--rpc-url",
            help="JSON-RPC endpoint; overrides the network default.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config and exit.",
        ),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["SWAP_ROUTER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | str] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = RouterSettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    ctx.obj = settings


async def _quote(
    state: AppState,
    token_in: str,
    token_out: str,
    amount: Decimal,
    max_slippage: float | None,
) -> OptimalRoute:
    sell = await state.tokens.resolve(token_in)
    buy = await state.tokens.resolve(token_out)
    return await state.router.find_optimal_route(
        sell, buy, amount, max_slippage=max_slippage
    )


@app.command()
def quote(
    ctx: typer.Context,
    token_in: Annotated[str, typer.Argument(help="Token to sell (symbol or address).")],
    token_out: Annotated[str, typer.Argument(help="Token to buy (symbol or address).")],
    amount: Annotated[str, typer.Argument(help="Amount of TOKEN_IN in whole tokens.")],
    max_slippage: Annotated[
        float | None,
        typer.Option(
            "--max-slippage",
            help="Price impact ceiling per hop, in percent.",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the route as JSON instead of a table."),
    ] = False,
):
    """Find the route with the highest expected output."""
    settings: RouterSettings = ctx.obj
    parsed_amount = _parse_amount(amount)
    state = _build_state(settings)

    try:
        route = asyncio.run(_quote(state, token_in, token_out, parsed_amount, max_slippage))
    except NoRouteFoundError as e:
        typer.echo(f"No route available for this pair: {e}", err=True)
        raise typer.Exit(code=1)
    except (SwapRouterError, ValueError) as e:
        typer.echo(f"Quote failed: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(route_to_dict(route), indent=2))
    else:
        format_route_table(route)


async def _pool(state: AppState, token_a: str, token_b: str, provider: PoolProvider):
    first = await state.tokens.resolve(token_a)
    second = await state.tokens.resolve(token_b)
    pool = await state.pools.get_pool_data(first, second, provider)
    return pool, state.pools.get_recommended_slippage(pool)


@app.command()
def pool(
    ctx: typer.Context,
    token_a: Annotated[str, typer.Argument(help="First token (symbol or address).")],
    token_b: Annotated[str, typer.Argument(help="Second token (symbol or address).")],
    provider: Annotated[
        PoolProvider,
        typer.Option("--provider", "-p", help="Pool provider to query."),
    ] = PoolProvider.UNISWAP_V2,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print pool data as JSON instead of a table."),
    ] = False,
):
    """Show reserves, liquidity and recommended slippage for a pair."""
    settings: RouterSettings = ctx.obj
    state = _build_state(settings)

    try:
        liquidity_pool, slippage = asyncio.run(_pool(state, token_a, token_b, provider))
    except (SwapRouterError, ValueError) as e:
        typer.echo(f"Pool lookup failed: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(pool_to_dict(liquidity_pool, slippage), indent=2))
    else:
        format_pool_table(liquidity_pool, slippage)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
