"""randplace CLI — typer entry point."""

from __future__ import annotations

import asyncio
import logging
import random
from collections import Counter
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from randplace.config import Settings, load_settings
from randplace.db.models import FallbackPolicy
from randplace.errors import RandplaceError
from randplace.server import render_json
from randplace.strategies import get_strategy, list_strategies

app = typer.Typer(
    name="randplace",
    help="Serve one random place, weighted by population and configured country/city multipliers.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _fail(exc: RandplaceError) -> typer.Exit:
    err_console.print(f"[bold red]{exc.code}:[/] {exc}")
    return typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    db: Annotated[Optional[Path], typer.Option("--db", envvar="RANDPLACE_DB_PATH", help="GeoNames SQLite database")] = None,
    cache_path: Annotated[Optional[Path], typer.Option("--cache-path", envvar="RANDPLACE_CACHE_PATH", help="SQLite cache file (default: in-memory)")] = None,
    cache_ttl: Annotated[Optional[float], typer.Option("--cache-ttl", envvar="RANDPLACE_CACHE_TTL", help="Seconds before the cached table expires")] = None,
    weights_url: Annotated[Optional[str], typer.Option("--weights", envvar="RANDPLACE_WEIGHTS_URL", help="Weighting document URL or path")] = None,
    fallback: Annotated[Optional[FallbackPolicy], typer.Option("--fallback", envvar="RANDPLACE_FALLBACK", help="When raw population is used")] = None,
    log_level: Annotated[str, typer.Option("--log-level", help="Logging level")] = "INFO",
) -> None:
    _setup_logging(log_level)
    try:
        ctx.obj = load_settings(
            db_path=db, cache_path=cache_path, cache_ttl=cache_ttl,
            weights_url=weights_url, fallback=fallback,
        )
    except RandplaceError as exc:
        raise _fail(exc)


# ── serve ─────────────────────────────────────────────────

@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option(envvar="RANDPLACE_HOST", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option(envvar="RANDPLACE_PORT", help="Bind port")] = None,
    base_path: Annotated[Optional[str], typer.Option("--base-path", envvar="RANDPLACE_BASE_PATH", help="Path prefix for all routes")] = None,
) -> None:
    """Serve random locations over HTTP."""
    from randplace.server import serve as do_serve

    settings = _settings(ctx)
    try:
        service = settings.build_service()
    except RandplaceError as exc:
        raise _fail(exc)
    do_serve(
        service,
        host=host or settings.host,
        port=port if port is not None else settings.port,
        base_path=base_path if base_path is not None else settings.base_path,
    )


# ── pick ──────────────────────────────────────────────────

@app.command()
def pick(
    ctx: typer.Context,
    mode: Annotated[str, typer.Option("-s", "--strategy", help="Sampling strategy")] = "population",
    seed: Annotated[Optional[int], typer.Option(help="Seed for a reproducible draw")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the JSON response body")] = False,
) -> None:
    """Draw one location and print it."""
    settings = _settings(ctx)
    try:
        get_strategy(mode)
    except KeyError as exc:
        err_console.print(f"[bold red]{exc.args[0]}[/]")
        raise typer.Exit(1)
    try:
        service = settings.build_service()
        if seed is not None:
            service.rng = random.Random(seed)
        locations = service.random_location_sync(mode)
    except RandplaceError as exc:
        raise _fail(exc)

    if as_json:
        typer.echo(render_json([loc.model_dump() for loc in locations]).decode("utf-8"))
        return
    for loc in locations:
        table = Table(title=f"{loc.name}, {loc.country}", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for field, value in loc.model_dump().items():
            if field == "alternatenames" and value and len(value) > 80:
                value = value[:80] + "..."
            table.add_row(field, "" if value is None else str(value))
        console.print(table)


# ── table (inspect) ──────────────────────────────────────

@app.command(name="table")
def table_inspect(
    ctx: typer.Context,
    rebuild: Annotated[bool, typer.Option("--rebuild", help="Rebuild before inspecting")] = False,
    top: Annotated[int, typer.Option(help="Show the N ids with the most selection mass")] = 10,
) -> None:
    """Show the cached weighted table (building it on a miss)."""
    settings = _settings(ctx)
    try:
        service = settings.build_service()
        weighted = service.rebuild_table_sync() if rebuild else asyncio.run(service.weighted_table())
    except RandplaceError as exc:
        raise _fail(exc)

    mass: Counter[int] = Counter()
    for entry in weighted:
        mass[entry.id] += entry.weight
    total = sum(mass.values())
    console.print(
        f"[bold green]{len(weighted)} entries[/] over {len(mass)} locations, total weight {total:,.0f}"
    )
    if not total:
        return
    table = Table(title=f"Top {min(top, len(mass))} by selection mass")
    table.add_column("ID", style="cyan")
    table.add_column("Entries", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Share", justify="right", style="bold")
    entries = Counter(e.id for e in weighted)
    for location_id, weight in mass.most_common(top):
        table.add_row(str(location_id), str(entries[location_id]), f"{weight:,.0f}", f"{weight / total:.2%}")
    console.print(table)


@app.command()
def invalidate(ctx: typer.Context) -> None:
    """Drop the cached weighted table; the next request rebuilds it."""
    settings = _settings(ctx)
    try:
        settings.build_service().table_cache.invalidate()
    except RandplaceError as exc:
        raise _fail(exc)
    console.print(f"[bold green]Invalidated[/] {settings.cache_key}")


# ── weights ──────────────────────────────────────────────

@app.command()
def weights(ctx: typer.Context) -> None:
    """Fetch and show the weighting document."""
    from randplace.providers.weights import get_weight_provider

    settings = _settings(ctx)
    try:
        cfg = asyncio.run(get_weight_provider(settings.weights_url, settings.http_timeout).fetch())
    except RandplaceError as exc:
        raise _fail(exc)

    console.print(f"base_population: [bold]{cfg.base_population}[/]")
    for title, mapping in (("Country", cfg.country_weights), ("City", cfg.city_weights)):
        if mapping is None:
            console.print(f"[yellow]{title} weights: absent[/]")
            continue
        table = Table(title=f"{title} weights")
        table.add_column(title, style="cyan")
        table.add_column("Multiplier", justify="right")
        for key, value in sorted(mapping.items()):
            table.add_row(key, f"{value:g}")
        console.print(table)


# ── import-geonames ──────────────────────────────────────

@app.command(name="import-geonames")
def import_geonames(
    ctx: typer.Context,
    dump: Annotated[Path, typer.Argument(help="Path to cities15000.txt", exists=True, dir_okay=False)],
) -> None:
    """Load a GeoNames cities dump into the database."""
    from randplace.db.geonames import read_dump
    from randplace.store import LocationStore

    settings = _settings(ctx)
    try:
        n = LocationStore(settings.db_path).import_locations(read_dump(dump))
    except RandplaceError as exc:
        raise _fail(exc)
    console.print(f"[bold green]Imported {n} locations[/] into {settings.db_path}")


# ── list-strategies ──────────────────────────────────────

@app.command(name="list-strategies")
def list_strategies_cmd() -> None:
    """List available sampling strategies."""
    table = Table(title="Strategies")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for name, cls in list_strategies().items():
        table.add_row(name, cls.description)
    console.print(table)
