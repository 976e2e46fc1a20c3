"""Typer CLI entrypoint for vpnlist."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from threading import Event
from typing import Annotated, Optional

import typer
import yaml
from rich.console import Console

from .config import ConfigRepository, GlobalConfig, QueryFilter
from .engine.exporter import OvpnExporter
from .engine.records import ConfigEntry
from .errors import FeedError, NotFoundError, PersistenceError
from .infra import RecordStore
from .logging_conf import configure_logging
from .orchestrator import Orchestrator
from .ui import ProgressActivity, ResultSink, render_records_table

app = typer.Typer(
    help="Catalog of public VPN Gate servers: update, list, probe and export OpenVPN configs.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()
err_console = Console(stderr=True)

CountryOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--country",
        "-c",
        help="Only servers with this country code (repeatable, comma separated allowed).",
        show_default=False,
    ),
]
SpeedOption = Annotated[
    int,
    typer.Option("--speed", "-s", min=0, help="Only servers faster than this many Mbps."),
]


@dataclass
class AppState:
    repository: ConfigRepository
    global_config: GlobalConfig
    store: RecordStore
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    store = RecordStore(global_config.database_path)
    orchestrator = Orchestrator(store=store, global_config=global_config)
    return AppState(
        repository=repository,
        global_config=global_config,
        store=store,
        orchestrator=orchestrator,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _fail(message: str, code: int = 1) -> typer.Exit:
    err_console.print(f"Error: {message}", style="red", highlight=False)
    return typer.Exit(code=code)


def _build_filter(countries: Optional[list[str]], speed: int) -> QueryFilter:
    codes: list[str] = []
    for value in countries or []:
        codes.extend(part for part in value.split(",") if part.strip())
    try:
        return QueryFilter(countries=codes or None, min_speed_mbps=speed)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _print_config(entry: ConfigEntry) -> None:
    console.print(f"# HOST: {entry.host_name}.opengw.net", highlight=False, markup=False)
    console.print(f"# IP: {entry.ip}", highlight=False, markup=False)
    console.print(f"# COUNTRY: {entry.country_long}", highlight=False, markup=False)
    console.file.write(entry.openvpn_config.decode("utf-8", errors="replace"))
    console.file.write("\n")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except PersistenceError as exc:
        raise _fail(f"cannot open the server database ({exc}).")
    except (ValueError, yaml.YAMLError) as exc:
        # pydantic ValidationError is a ValueError
        raise _fail(f"invalid configuration ({exc}).")
    ctx.call_on_close(ctx.obj.orchestrator.close)


@app.command("list", help="List stored servers, optionally checking which are online.")
def list_servers(
    ctx: typer.Context,
    country: CountryOption = None,
    speed: SpeedOption = 0,
    ping: Annotated[bool, typer.Option("--ping", "-p", help="Check if servers are online.")] = False,
    workers: Annotated[
        Optional[int],
        typer.Option("--ping-workers", "-w", min=1, help="Probe several servers simultaneously."),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--ping-timeout", "-t", min=0.001, help="Probe timeout in seconds."),
    ] = None,
    no_color: Annotated[bool, typer.Option("--no-color", help="Plain output rows.")] = False,
) -> None:
    state = _get_state(ctx)
    query = _build_filter(country, speed)
    if not ping:
        try:
            targets = state.store.query_filtered(query)
        except PersistenceError as exc:
            raise _fail(f"can not retrieve records ({exc}).")
        if not targets:
            if state.store.count() == 0:
                console.print(
                    "There are no server records in the local database yet.\n"
                    "To populate the database, run `vpnlist update`.",
                    style="yellow",
                )
            return
        console.print(render_records_table(targets))
        return

    if state.store.count() == 0:
        console.print(
            "There are no server records in the local database yet.\n"
            "To populate the database, run `vpnlist update`.",
            style="yellow",
        )
        return
    sink = ResultSink(console, color=state.global_config.color_output and not no_color)
    cancel = Event()
    try:
        summary = state.orchestrator.probe(
            query, sink, workers=workers, timeout=timeout, cancel_event=cancel
        )
    except PersistenceError as exc:
        raise _fail(f"can not retrieve records ({exc}).")
    except KeyboardInterrupt:
        cancel.set()
        raise _fail("interrupted.", code=130)
    if summary["total"]:
        console.print(
            f"Online: {summary['online']}, offline: {summary['offline']}, total: {summary['total']}.",
            style="dim",
            highlight=False,
        )


@app.command("update", help="Download the server list from vpngate.net and store it locally.")
def update(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    activity = ProgressActivity(console=err_console)
    activity.start("Downloading server list…")
    try:
        summary = state.orchestrator.update()
    except FeedError as exc:
        raise _fail(f"can not download vpn list ({exc}).")
    except PersistenceError as exc:
        raise _fail(f"can not save records ({exc}).")
    finally:
        activity.close()
    console.print(
        f"Got servers: {summary['received']}, total servers in the database: {summary['total']}.",
        highlight=False,
    )


@app.command("random", help="Print a random OpenVPN config from the local database.")
def random_config(
    ctx: typer.Context,
    country: CountryOption = None,
    speed: SpeedOption = 0,
) -> None:
    state = _get_state(ctx)
    query = _build_filter(country, speed)
    try:
        entry = state.store.query_random(query)
    except (NotFoundError, PersistenceError) as exc:
        raise _fail(f"can not retrieve config ({exc}).")
    _print_config(entry)


@app.command("show", help="Print the OpenVPN config of the host whose name contains NAME.")
def show_config(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Host name or part of it."),
) -> None:
    state = _get_state(ctx)
    try:
        entry = state.store.query_specific(name)
    except (NotFoundError, PersistenceError) as exc:
        raise _fail(f"can not retrieve config ({exc}).")
    _print_config(entry)


@app.command("countries", help="List countries of servers stored in the database.")
def countries(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        labels = state.store.distinct_countries()
    except PersistenceError as exc:
        raise _fail(f"can not retrieve countries ({exc}).")
    for label in labels:
        console.print(label, highlight=False, markup=False)


@app.command("export", help="Write matching OpenVPN configs as .ovpn files.")
def export_configs(
    ctx: typer.Context,
    country: CountryOption = None,
    speed: SpeedOption = 0,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Target directory (defaults to the configured export dir)."),
    ] = None,
) -> None:
    state = _get_state(ctx)
    query = _build_filter(country, speed)
    exporter = OvpnExporter(output_dir or state.global_config.export_dir)
    try:
        count = state.orchestrator.export_configs(query, exporter)
    except (OSError, PersistenceError) as exc:
        raise _fail(f"can not export configs ({exc}).")
    console.print(f"Saved {count} config(s) to {exporter.output_dir}.", highlight=False)


@app.command("version", help="Print program version.")
def show_version() -> None:
    try:
        current = package_version("vpnlist")
    except PackageNotFoundError:
        current = "unknown"
    console.print(
        f"vpnlist {current} (Python {platform.python_version()})", highlight=False
    )


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
