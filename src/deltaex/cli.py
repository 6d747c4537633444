"""Typer-based CLI for the Delta adapter."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .exchanges.delta import DeltaClient


def _build_client(config_path: Optional[Path] = None) -> "DeltaClient":
    from .config import load_settings
    from .exchanges.factory import create_client_from_settings

    settings = load_settings(config_path)
    return create_client_from_settings(settings)


app = typer.Typer(help="Delta Exchange adapter CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def _fmt(value: float | None, digits: int = 6) -> str:
    return f"{value:.{digits}f}" if value is not None else "N/A"


def _fmt_ms(timestamp: int | None) -> str:
    if timestamp is None:
        return ""
    return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _run(coro, action: str) -> None:
    try:
        asyncio.run(coro)
    except Exception as e:
        logger.error("Failed to %s: %s", action, e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def status(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show exchange status and server time."""
    _run(_status_async(config), "fetch status")


async def _status_async(config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        result = await client.fetch_status()
    finally:
        await client.close()

    style = "green" if result.status == "ok" else "yellow"
    console.print(Panel.fit(
        f"Status: [{style}]{result.status.upper()}[/{style}]\n"
        f"Server time: {_fmt_ms(result.updated)}",
        title="Delta Exchange",
    ))


@app.command()
def markets(
    kind: Optional[str] = typer.Option(None, help="Filter by kind (spot, swap, future, option)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List markets from the product catalog."""
    _run(_markets_async(kind, config), "list markets")


async def _markets_async(kind: Optional[str], config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        catalog = await client.load_markets()
    finally:
        await client.close()

    rows = [m for m in catalog if kind is None or m.kind.value == kind]

    table = Table(title="Markets")
    table.add_column("Symbol", style="green")
    table.add_column("Id", style="cyan")
    table.add_column("Product", style="dim")
    table.add_column("Kind", style="magenta")
    table.add_column("Tick", style="yellow")
    table.add_column("Active", style="blue")

    for market in rows:
        table.add_row(
            market.symbol or "",
            market.id or "",
            str(market.numeric_id) if market.numeric_id is not None else "",
            market.kind.value,
            str(market.tick_size) if market.tick_size is not None else "",
            "[green]yes[/green]" if market.active else "[red]no[/red]",
        )

    console.print(table)
    console.print(f"\n[bold]Total markets:[/bold] {len(rows)}")


@app.command()
def ticker(
    symbol: str = typer.Argument(..., help="Market symbol (e.g. BTC/USDT or BTCUSDT)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the 24h ticker for a market."""
    _run(_ticker_async(symbol, config), "fetch ticker")


async def _ticker_async(symbol: str, config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        result = await client.fetch_ticker(symbol)
    finally:
        await client.close()

    change = f"{result.percentage:.2f}%" if result.percentage is not None else "N/A"
    console.print(Panel.fit(
        f"Last: [bold]{_fmt(result.last, 4)}[/bold]\n"
        f"Open: {_fmt(result.open, 4)}  High: {_fmt(result.high, 4)}  Low: {_fmt(result.low, 4)}\n"
        f"Change: {change}\n"
        f"Volume: {_fmt(result.base_volume, 2)}  Turnover: {_fmt(result.quote_volume, 2)}\n"
        f"Time: {_fmt_ms(result.timestamp)}",
        title=result.symbol or symbol,
    ))


@app.command()
def ohlcv(
    symbol: str = typer.Argument(..., help="Market symbol"),
    timeframe: str = typer.Option("1h", help="Candle timeframe"),
    limit: int = typer.Option(24, help="Number of candles"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show recent candles for a market."""
    _run(_ohlcv_async(symbol, timeframe, limit, config), "fetch candles")


async def _ohlcv_async(symbol: str, timeframe: str, limit: int, config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        candles = await client.fetch_ohlcv(symbol, timeframe, limit=limit)
    finally:
        await client.close()

    table = Table(title=f"{symbol} {timeframe}")
    table.add_column("Time", style="dim")
    for column in ("Open", "High", "Low", "Close", "Volume"):
        table.add_column(column, style="cyan")

    for timestamp, open_, high, low, close, volume in candles:
        table.add_row(
            _fmt_ms(timestamp),
            _fmt(open_, 4),
            _fmt(high, 4),
            _fmt(low, 4),
            _fmt(close, 4),
            _fmt(volume, 2),
        )

    console.print(table)


@app.command()
def balance(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show wallet balances."""
    _run(_balance_async(config), "fetch balance")


async def _balance_async(config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        balances = await client.fetch_balance()
    finally:
        await client.close()

    if not balances:
        console.print("[yellow]No balances found[/yellow]")
        return

    table = Table(title="Balances")
    table.add_column("Currency", style="green")
    table.add_column("Total", style="cyan")
    table.add_column("Free", style="cyan")
    table.add_column("Used", style="magenta")

    for code, entry in sorted(balances.items()):
        table.add_row(code, _fmt(entry.total), _fmt(entry.free), _fmt(entry.used))

    console.print(table)


@app.command()
def orders(
    symbol: Optional[str] = typer.Option(None, help="Filter by market symbol"),
    closed: bool = typer.Option(False, "--closed", help="Show order history instead of open orders"),
    limit: Optional[int] = typer.Option(None, help="Page size"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List open (or closed) orders."""
    _run(_orders_async(symbol, closed, limit, config), "list orders")


async def _orders_async(symbol: Optional[str], closed: bool, limit: Optional[int], config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        if closed:
            result = await client.fetch_closed_orders(symbol, limit=limit)
        else:
            result = await client.fetch_open_orders(symbol, limit=limit)
    finally:
        await client.close()

    if not result:
        console.print("[yellow]No orders found[/yellow]")
        return

    table = Table(title="Closed Orders" if closed else "Open Orders")
    table.add_column("Id", style="cyan")
    table.add_column("Symbol", style="green")
    table.add_column("Side", style="magenta")
    table.add_column("Type", style="blue")
    table.add_column("Price", style="yellow")
    table.add_column("Size", style="cyan")
    table.add_column("Filled", style="cyan")
    table.add_column("Status", style="white")

    for order in result:
        table.add_row(
            order.id or "",
            order.symbol or "",
            order.side or "",
            order.type or "",
            _fmt(order.price, 4),
            _fmt(order.amount, 0),
            _fmt(order.filled, 0),
            order.status or "",
        )

    console.print(table)


@app.command()
def cancel(
    order_id: str = typer.Argument(..., help="Order ID to cancel"),
    symbol: str = typer.Option(..., help="Market symbol of the order"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Cancel an open order."""
    _run(_cancel_async(order_id, symbol, config), "cancel order")


async def _cancel_async(order_id: str, symbol: str, config: Optional[Path]) -> None:
    client = _build_client(config)
    try:
        order = await client.cancel_order(order_id, symbol)
    finally:
        await client.close()

    console.print(Panel.fit(
        f"[green]✓ Order cancelled[/green]\n"
        f"Order ID: {order.id}\n"
        f"Symbol: {order.symbol}\n"
        f"Status: {order.status}",
        title="Cancel",
    ))


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
