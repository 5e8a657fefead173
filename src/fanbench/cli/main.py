"""fanbench CLI - Bounded pool vs unbounded per-task fan-out benchmarks."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
import yaml
from rich.console import Console

from fanbench import __version__
from fanbench.application.statistics import summarize
from fanbench.cli.formatters import (
    comparison_table,
    load_test_table,
    metrics_table,
    sweep_table,
)
from fanbench.domain.models import BatchResult, ExecutionModelType
from fanbench.infrastructure.config import Config, ConfigManager
from fanbench.infrastructure.exceptions import FanbenchError, InvalidParameterError
from fanbench.infrastructure.logger import setup_logging
from fanbench.services.benchmark_service import BenchmarkService, batch_record

T = TypeVar("T")

app = typer.Typer(
    name="fanbench",
    help="Benchmark a bounded worker pool against one-worker-per-task fan-out",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


# ===== Helper Functions =====
def _load_config(capacity: int | None = None) -> tuple[ConfigManager, Config]:
    """Load configuration and set up logging."""
    config_manager = ConfigManager()
    config = config_manager.load_config()
    if capacity is not None:
        config = config.model_copy(
            update={"pool": config.pool.model_copy(update={"capacity": capacity})}
        )

    setup_logging(
        log_level=config.log_level,
        log_dir=config_manager.get_log_dir() if config.monitoring.log_to_file else None,
    )
    return config_manager, config


def _run(operation: Callable[[BenchmarkService], Awaitable[T]], config: Config) -> T:
    """Run one benchmark operation against a fresh service.

    Fatal benchmark errors are printed and turned into a non-zero exit code;
    nothing partial is printed.
    """

    async def _execute() -> T:
        async with BenchmarkService(config) as service:
            return await operation(service)

    try:
        return asyncio.run(_execute())
    except InvalidParameterError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e
    except FanbenchError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _print_json(record: dict[str, Any]) -> None:
    typer.echo(json.dumps(record, indent=2))


def _print_batch(batch: BatchResult, as_json: bool, show_results: bool) -> None:
    if as_json:
        _print_json(batch_record(batch, include_results=show_results))
        return

    console.print(metrics_table(summarize(batch)))
    if batch.resource_usage is not None:
        usage = batch.resource_usage
        console.print(
            f"[dim]Peak memory {usage.peak_memory_mb:.1f} MB, "
            f"peak tasks {usage.peak_task_count}, "
            f"peak threads {usage.peak_thread_count}[/dim]"
        )
    if show_results:
        for result in batch.failures:
            console.print(f"[red]✗[/red] {result.target}: {result.error}")


# ===== Version =====
@app.command()
def version() -> None:
    """Show fanbench version."""
    console.print(f"[bold]fanbench[/bold] version [cyan]{__version__}[/cyan]")


# ===== Benchmark Commands =====
@app.command("bounded")
def run_bounded(
    count: int = typer.Option(50, "--count", "-n", help="Number of concurrent requests"),
    delay: int = typer.Option(200, "--delay", "-d", help="Artificial delay per request (ms)"),
    capacity: int | None = typer.Option(None, help="Override the pool capacity"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result record"),
    show_results: bool = typer.Option(False, "--results", help="Include individual task results"),
) -> None:
    """Fan out requests through the bounded worker pool.

    Examples:
        fanbench bounded                       # 50 requests, 200 ms each
        fanbench bounded -n 500 --capacity 50  # queueing behind 50 workers
    """
    _, config = _load_config(capacity)
    batch = _run(lambda service: service.run_bounded_pool(count, delay), config)
    _print_batch(batch, as_json, show_results)


@app.command("unbounded")
def run_unbounded(
    count: int = typer.Option(50, "--count", "-n", help="Number of concurrent requests"),
    delay: int = typer.Option(200, "--delay", "-d", help="Artificial delay per request (ms)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result record"),
    show_results: bool = typer.Option(False, "--results", help="Include individual task results"),
) -> None:
    """Fan out requests with one new worker per request."""
    _, config = _load_config()
    batch = _run(lambda service: service.run_unbounded_per_task(count, delay), config)
    _print_batch(batch, as_json, show_results)


@app.command("compare")
def compare(
    count: int = typer.Option(50, "--count", "-n", help="Number of concurrent requests"),
    delay: int = typer.Option(200, "--delay", "-d", help="Artificial delay per request (ms)"),
    capacity: int | None = typer.Option(None, help="Override the pool capacity"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result record"),
) -> None:
    """Run both models on the same load, bounded pool first, and compare."""
    _, config = _load_config(capacity)
    result = _run(lambda service: service.compare(count, delay), config)

    if as_json:
        _print_json(result.to_record())
    else:
        console.print(comparison_table(result))


@app.command("sweep")
def sweep(
    max_count: int | None = typer.Option(None, "--max-count", "-m", help="Highest load level"),
    delay: int | None = typer.Option(None, "--delay", "-d", help="Artificial delay per request (ms)"),
    step: int | None = typer.Option(None, "--step", "-s", help="Distance between load levels"),
    capacity: int | None = typer.Option(None, help="Override the pool capacity"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result record"),
) -> None:
    """Compare both models at step, 2*step, ... up to max-count requests.

    Defaults come from the sweep section of the configuration
    (1000 requests, 100 ms delay, step 100).

    Examples:
        fanbench sweep                         # 10 load levels
        fanbench sweep -m 300 -s 100 -d 0      # 100, 200, 300 without delay
    """
    _, config = _load_config(capacity)
    max_count = config.sweep.max_api_count if max_count is None else max_count
    delay = config.sweep.delay_ms if delay is None else delay
    step = config.sweep.step if step is None else step

    result = _run(lambda service: service.sweep(max_count, delay, step), config)

    if as_json:
        _print_json(result.to_record())
    else:
        console.print(sweep_table(result))


@app.command("load-test")
def load_test(
    users: int | None = typer.Option(None, "--users", "-u", help="Number of concurrent users"),
    count: int | None = typer.Option(None, "--count", "-n", help="Requests each user fans out"),
    delay: int | None = typer.Option(None, "--delay", "-d", help="Artificial delay per request (ms)"),
    model: ExecutionModelType | None = typer.Option(
        None, "--model", help="Load test only this model instead of comparing both"
    ),
    capacity: int | None = typer.Option(None, help="Override the pool capacity"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result record"),
) -> None:
    """Run concurrent users that each trigger a full fan-out.

    Both the users and each user's requests run on the model under test.
    Defaults come from the load_test section of the configuration
    (100 users, 20 requests each, 100 ms delay).

    Examples:
        fanbench load-test                              # compare both models
        fanbench load-test -u 50 -n 10 --model bounded_pool
    """
    _, config = _load_config(capacity)
    users = config.load_test.concurrent_users if users is None else users
    count = config.load_test.api_count if count is None else count
    delay = config.load_test.delay_ms if delay is None else delay

    if model is not None:
        selected = model
        metrics = _run(lambda service: service.load_test(users, count, delay, selected), config)
        if as_json:
            _print_json(metrics.to_record())
        else:
            console.print(metrics_table(metrics, unit="users"))
        return

    comparison = _run(lambda service: service.compare_load_tests(users, count, delay), config)
    if as_json:
        _print_json(comparison.to_record())
    else:
        console.print(load_test_table(comparison))


@app.command("info")
def info() -> None:
    """Show the runtime the benchmarks run on."""
    _, config = _load_config()
    details = _run(_runtime_info, config)
    for key, value in details.items():
        console.print(f"[cyan]{key}[/cyan]: {value}")


async def _runtime_info(service: BenchmarkService) -> dict[str, Any]:
    return service.runtime_info()


# ===== Config Commands =====
config_app = typer.Typer(help="Configuration management", no_args_is_help=True)
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show() -> None:
    """Show the merged configuration."""
    config = ConfigManager().load_config()
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
