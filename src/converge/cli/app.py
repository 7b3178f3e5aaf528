"""
Root Typer application for the ``converge`` CLI.

Usage::

    converge scenarios                              # list registered scenarios
    converge run standalone-scale-up                # run one scenario
    converge run standalone-pair --namespace ns-1 --keep --json
    converge peers --namespace ns-1                 # aggregator peer list
    converge phase standalone foo --namespace ns-1 --wait Ready
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from converge.core.errors import ConvergeError
from converge.core.logging import configure_logging

if TYPE_CHECKING:
    from converge.scenarios.results import ScenarioResult

app = typer.Typer(
    name="converge",
    help="converge: convergence checks for operator-managed clusters.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from converge import __version__

        try:
            v = pkg_version("converge-harness")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"converge {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """converge CLI: deploy, scale and verify convergence."""
    from converge.core.settings import LOG_FORMATS, get_settings

    try:
        settings = get_settings()
    except (ConvergeError, ValidationError) as e:
        err_console.print(f"[red]✗ Invalid configuration:[/] {e}")
        raise typer.Exit(code=2) from e
    configure_logging(
        level=settings.log_level,
        json_format=LOG_FORMATS[settings.log_format],
    )


def _require_namespace(namespace: str | None) -> str:
    from converge.core.settings import get_settings

    namespace = namespace or get_settings().namespace
    if not namespace:
        err_console.print("[red]✗ --namespace is required (or set CONVERGE_NAMESPACE)[/]")
        raise typer.Exit(code=2)
    return namespace


# ── Scenarios ────────────────────────────────────────────────────────────


@app.command("scenarios")
def list_scenarios_cmd(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List registered scenarios."""
    from converge.scenarios.catalog import list_scenarios

    scenarios = list_scenarios()
    if json_out:
        typer.echo(json.dumps(
            [{"name": s.name, "description": s.description} for s in scenarios],
            indent=2,
        ))
        return

    table = Table(title="Scenarios")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for s in scenarios:
        table.add_row(s.name, s.description)
    console.print(table)


@app.command("run")
def run_scenario(
    name: str = typer.Argument(..., help="Scenario name (see `converge scenarios`)."),
    namespace: str | None = typer.Option(
        None, "--namespace", "-n", help="Use an existing namespace instead of creating one."
    ),
    keep: bool = typer.Option(False, "--keep", help="Skip teardown after the run."),
    json_out: bool = typer.Option(False, "--json", help="Output the result as JSON."),
) -> None:
    """Run one scenario against the current cluster.

    Exits 1 when the scenario fails or errors.
    """
    from converge.cluster.kubectl import Kubectl
    from converge.core.errors import ScenarioNotFoundError
    from converge.core.settings import get_settings
    from converge.scenarios.runner import ScenarioRunner

    settings = get_settings()
    runner = ScenarioRunner(settings, kubectl=Kubectl.from_settings(settings))

    if not json_out:
        console.print(f"[bold]converge run[/] {name}")
    try:
        result = runner.run(name, namespace=namespace, keep=keep or None)
    except ScenarioNotFoundError as e:
        err_console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(code=2) from e

    if json_out:
        typer.echo(result.model_dump_json(indent=2))
    else:
        _print_scenario_result(result)

    if not result.passed:
        raise typer.Exit(code=1)


# ── Inspection ───────────────────────────────────────────────────────────


@app.command("peers")
def show_peers(
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print the peers configured on the monitoring aggregator."""
    from converge.cluster.aggregator import KubectlAggregator
    from converge.core.settings import get_settings

    namespace = _require_namespace(namespace)
    aggregator = KubectlAggregator.from_settings(get_settings())
    try:
        peers = aggregator.read_peer_list(namespace)
    except ConvergeError as e:
        err_console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(code=1) from e

    if json_out:
        typer.echo(json.dumps(peers, indent=2))
        return
    if not peers:
        console.print(f"[yellow]No peers configured in {namespace}[/]")
        return
    table = Table(title=f"Aggregator peers in {namespace}")
    table.add_column("#", justify="right")
    table.add_column("Peer")
    for i, peer in enumerate(peers):
        table.add_row(str(i), peer)
    console.print(table)


@app.command("phase")
def show_phase(
    kind: str = typer.Argument(..., help="Resource kind: standalone or shc."),
    name: str = typer.Argument(..., help="Resource name."),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace."),
    wait: str | None = typer.Option(
        None, "--wait", "-w", help="Block until the resource reaches this phase."
    ),
) -> None:
    """Print a resource's phase, optionally waiting for a target phase."""
    from converge.cluster.control_plane import KubectlControlPlane
    from converge.cluster.phase import Phase
    from converge.cluster.probes import phase_probe
    from converge.cluster.resources import Resource, ResourceKind
    from converge.core.settings import get_settings
    from converge.polling.poller import Poller

    settings = get_settings()
    namespace = _require_namespace(namespace)
    try:
        resource_kind = ResourceKind.from_cli(kind)
        target = Phase(wait) if wait else None
    except ValueError as e:
        err_console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(code=2) from e

    resource = Resource(name=name, namespace=namespace, kind=resource_kind)
    control_plane = KubectlControlPlane.from_settings(settings)

    try:
        if target is None:
            phase = control_plane.get_instance_phase(resource)
        else:
            outcome = Poller(settings.poll_spec()).wait_until(
                phase_probe(control_plane, resource), target
            )
            phase = outcome.value
    except ConvergeError as e:
        err_console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(code=1) from e

    console.print(f"{resource.ref}: [bold]{phase.value}[/]")


# ── Formatting ───────────────────────────────────────────────────────────


_STATUS_STYLE = {
    "PASSED": "[green]✓ PASSED[/]",
    "FAILED": "[red]✗ FAILED[/]",
    "ERROR": "[red]✗ ERROR[/]",
}


def _print_scenario_result(result: ScenarioResult) -> None:
    table = Table(title=f"{result.scenario} ({result.namespace})")
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Observed")
    table.add_column("Duration", justify="right")
    for step in result.steps:
        table.add_row(
            step.name,
            _STATUS_STYLE.get(step.status.value, step.status.value),
            "" if step.attempts is None else str(step.attempts),
            step.observed or "",
            f"{step.duration_seconds:.1f}s",
        )
    console.print(table)
    status = _STATUS_STYLE.get(result.overall_status.value, result.overall_status.value)
    console.print(f"{status} {result.summary} in {result.duration_seconds:.1f}s")
    if result.error:
        console.print(f"  [red]{result.error.get('message', '')}[/]")
    if not result.teardown:
        console.print(f"  [yellow]Resources kept in namespace {result.namespace}[/]")


if __name__ == "__main__":
    app()
