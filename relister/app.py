"""Typer CLI entrypoint for relister."""

from __future__ import annotations

import json
import traceback
from dataclasses import dataclass
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, RelisterConfig
from .engine import Candidate
from .errors import ConfigurationError
from .logging_conf import available_logs, configure_logging, default_log_dir, tail_log
from .orchestrator import Runtime, build_runtime

app = typer.Typer(
    help="relister command line tool",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log viewing commands", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False
    runtime: Runtime | None = None

    def ensure_runtime(self) -> Runtime:
        if self.runtime is None:
            try:
                self.runtime = build_runtime(self.repository)
            except ConfigurationError as exc:
                console.print(f"Configuration error: {exc}", style="red")
                raise typer.Exit(code=2)
        return self.runtime


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(repository=ConfigRepository(), verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_config_table(config: RelisterConfig) -> Table:
    table = Table(title="Effective configuration", box=box.SIMPLE_HEAD)
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", overflow="fold")
    table.add_row("deploy_mode", config.deploy_mode.value)
    table.add_row("transport", config.transport.kind)
    table.add_row("store", f"{config.store.backend}:{config.store.table_name or config.store.sqlite_path}")
    for name, value in config.functions.model_dump().items():
        table.add_row(f"functions.{name}", str(value or "-"))
    return table


def _render_records_table(keys: list[str], records: dict[str, dict]) -> Table:
    table = Table(title=f"Processing records · {len(records)}/{len(keys)} found", box=box.SIMPLE_HEAD)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Created", style="green")
    table.add_column("Title", overflow="fold")
    for key in keys:
        record = records.get(key)
        if record is None:
            table.add_row(key, "-", "-", "-")
            continue
        kind = "ban" if record.get("isDraft") else "listing"
        table.add_row(key, kind, str(record.get("createdAt", "-")), str(record.get("ebayTitle", "-")))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Run the search loop until SIGTERM.")
def run(
    ctx: typer.Context,
    max_cycles: Optional[int] = typer.Option(
        None, "--max-cycles", min=1, help="Stop after N cycles (smoke runs)."
    ),
) -> None:
    state = _get_state(ctx)
    runtime = state.ensure_runtime()
    logger = configure_logging(state.verbose)
    runtime.shutdown.install()
    try:
        cycles = runtime.controller.run(max_cycles=max_cycles)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "container_crashed",
            content={
                "name": type(exc).__name__,
                "message": str(exc),
                "stack": traceback.format_exc(),
            },
        )
        raise typer.Exit(code=1)
    logger.info("container_ended", cycles=cycles)


@app.command("process", help="Run a single source item through the pipeline.")
def process(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Source item id."),
    store: str = typer.Option("X", "--store", help="Pinned store, or X to let the chooser decide."),
) -> None:
    state = _get_state(ctx)
    runtime = state.ensure_runtime()
    result = runtime.pipeline.process(Candidate(id=item_id), store)
    style = {"listed": "green", "excluded": "yellow"}.get(result.outcome.value, "dim")
    console.print(f"{result.item_id}: {result.outcome.value}", style=style)
    if result.reason:
        console.print(f"reason: {result.reason}", style="dim")
    if result.listing_id:
        console.print(f"listing id: {result.listing_id}")


@app.command("record", help="Show stored processing records for source item ids.")
def record(
    ctx: typer.Context,
    item_ids: List[str] = typer.Argument(..., help="Source item ids."),
    as_json: bool = typer.Option(False, "--json", help="Print raw records as JSON."),
) -> None:
    state = _get_state(ctx)
    runtime = state.ensure_runtime()
    keys = [runtime.writer.keys.key(item_id) for item_id in item_ids]
    records: dict[str, dict] = {}
    width = runtime.store.batch_read_limit
    for start in range(0, len(keys), width):
        records.update(runtime.store.batch_get(keys[start : start + width]))
    if as_json:
        console.print_json(json.dumps(records, ensure_ascii=False, default=str))
    else:
        console.print(_render_records_table(keys, records))


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        config = state.repository.load()
    except ConfigurationError as exc:
        console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=2)
    console.print(_render_config_table(config))
    missing = config.functions.missing()
    if missing:
        console.print("Missing function references: " + ", ".join(missing), style="yellow")


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="yellow")
        return
    for path in logs:
        console.print(path.name)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: str = typer.Argument("relister", help="Log name without .log"),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines."),
) -> None:
    path = default_log_dir() / f"{name}.log"
    content = tail_log(path, lines)
    if not content:
        console.print(f"Log `{name}` is empty or missing.", style="yellow")
        raise typer.Exit(code=1)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
