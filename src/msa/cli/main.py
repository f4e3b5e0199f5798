"""CLI application using Typer for the MSA dashboard."""

import json
from pathlib import Path
from typing import List, Optional
import typer
from rich.console import Console
from rich.table import Table

from ..charts.builder import build_forest_chart, build_scatter_chart
from ..charts.render import save_chart
from ..charts.spec import ChartSpec
from ..config.settings import settings
from ..core.labels import FACTOR_LABELS
from ..core.models import (
    ColorFactor,
    ControlEvent,
    EffectVar,
    Framework,
    Predictor,
    ScatterColorFactor,
    SelectionState,
)
from ..io.dataset import Dataset, DatasetError, load_dataset
from ..io.validation import validate_dataset_file
from ..session.state import SelectionError, apply_event, initial_state
from ..utils.logging import configure_logging, get_logger
from ..views.derive import available_categories, derive_forest, derive_scatter
from ..web.app import start_server as _start_web_server

app = typer.Typer(
    name="msa",
    help="MSA dashboard - explore meta-analytic effect sizes",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Configure logging before running a command."""
    if log_level:
        configure_logging(level=log_level)


def _load(dataset_path: Optional[Path]) -> Dataset:
    path = dataset_path or settings.dataset_path
    try:
        return load_dataset(path)
    except DatasetError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _apply(dataset: Dataset, state: SelectionState, control_id: str, value: object) -> SelectionState:
    try:
        return apply_event(dataset, state, ControlEvent(control_id=control_id, value=value))
    except SelectionError as e:
        raise typer.BadParameter(str(e))


def _write_outputs(spec: ChartSpec, output: Optional[Path], spec_json: Optional[Path]) -> None:
    if spec_json is not None:
        spec_json.parent.mkdir(parents=True, exist_ok=True)
        spec_json.write_text(json.dumps(spec.model_dump(mode="json"), indent=2))
        console.print(f"[green]✓ Chart spec saved to {spec_json}[/green]")
    if output is not None:
        save_chart(spec, output)
        console.print(f"[green]✓ {spec.output_id} saved to {output}[/green]")


@app.command()
def serve(
    host: str = typer.Option(
        settings.host,
        "--host",
        help="Hostname to bind the web server to.",
    ),
    port: int = typer.Option(
        settings.port,
        "--port",
        help="Port for the web server.",
    ),
    reload: bool = typer.Option(
        False,
        "--reload/--no-reload",
        help="Enable auto-reload (development only).",
    ),
) -> None:
    """Start the dashboard API server.

    The results table at ``DATASET_PATH`` is loaded once at startup; the
    server refuses to start if it is missing or malformed.
    """
    console.print(f"[bold blue]Starting web server[/bold blue] at http://{host}:{port}")
    _start_web_server(host=host, port=port, reload=reload)


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"MSA dashboard v{__version__}")


@app.command()
def validate(
    dataset_path: Path = typer.Argument(..., help="Results table (parquet, csv, feather or json)"),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
) -> None:
    """
    Check that a results table can be served by the dashboard.

    Examples:
        msa validate data/merged_posterior.parquet
        msa validate data/merged_posterior.csv --strict
    """
    passed = validate_dataset_file(dataset_path, strict=strict)
    if passed:
        console.print("\n[bold green]✓ Validation passed![/bold green]")
        raise typer.Exit(0)
    else:
        console.print("\n[bold red]✗ Validation failed![/bold red]")
        raise typer.Exit(1)


@app.command()
def categories(
    factor: ColorFactor = typer.Option(ColorFactor.OUTCOME, "--factor", "-f", help="Categorical factor"),
    dataset_path: Optional[Path] = typer.Option(None, "--dataset", "-d", help="Results table"),
) -> None:
    """List the checkbox categories available for a factor."""
    dataset = _load(dataset_path)
    values = available_categories(dataset, factor)
    column = dataset.column(factor.value)
    table = Table(title=FACTOR_LABELS[factor])
    table.add_column("Category", style="cyan")
    table.add_column("Models", justify="right")
    for value in values:
        table.add_row(value, str(int((column.astype(str) == value).sum())))
    missing = int(column.isna().sum())
    if missing:
        table.add_row("[dim](missing)[/dim]", str(missing))
    console.print(table)


@app.command()
def forest(
    dataset_path: Optional[Path] = typer.Option(None, "--dataset", "-d", help="Results table"),
    color: ColorFactor = typer.Option(ColorFactor.OUTCOME, "--color", "-c", help="Factor to color models by"),
    framework: Framework = typer.Option(Framework.ANY, "--framework", help="Inferential framework"),
    category: Optional[List[str]] = typer.Option(
        None, "--category", help="Category to include (repeatable; default all)"
    ),
    submitted: bool = typer.Option(True, "--submitted/--no-submitted", help="Plot submitted effects"),
    hide_intervals: bool = typer.Option(False, "--hide-intervals", help="Hide intervals"),
    output: Optional[Path] = typer.Option(
        settings.output_dir / "forest_plot.png", "--output", "-o", help="Image file (PNG/SVG)"
    ),
    spec_json: Optional[Path] = typer.Option(None, "--spec-json", help="Also write the chart spec as JSON"),
) -> None:
    """
    Render the forest plot of posterior estimates.

    Selections are applied in the same order as the dashboard controls,
    so choosing a factor first checks all of its categories.
    """
    dataset = _load(dataset_path)
    state = initial_state(dataset)
    state = _apply(dataset, state, "color", color.value)
    state = _apply(dataset, state, "framework", framework.value)
    state = _apply(dataset, state, "include_submitted", submitted)
    state = _apply(dataset, state, "hide_intervals", hide_intervals)
    if category:
        state = _apply(dataset, state, "checkbox", category)
    view = derive_forest(dataset, state)
    console.print(f"[bold blue]Forest plot[/bold blue]: {view.row_count} models ({view.x_label})")
    spec = build_forest_chart(view, state.include_submitted, state.hide_intervals)
    _write_outputs(spec, output, spec_json)


@app.command()
def scatter(
    dataset_path: Optional[Path] = typer.Option(None, "--dataset", "-d", help="Results table"),
    y: EffectVar = typer.Option(EffectVar.POST_MEAN, "--y", help="Effect on the y axis"),
    x: Predictor = typer.Option(Predictor.YEARS_FROM_PHD, "--x", help="Predictor on the x axis"),
    color: ScatterColorFactor = typer.Option(ScatterColorFactor.NONE, "--color", "-c", help="Factor to color by"),
    standardize: bool = typer.Option(False, "--standardize", help="Standardize the predictor"),
    regression: bool = typer.Option(False, "--regression", help="Add regression line(s)"),
    output: Optional[Path] = typer.Option(
        settings.output_dir / "scatter_plot.png", "--output", "-o", help="Image file (PNG/SVG)"
    ),
    spec_json: Optional[Path] = typer.Option(None, "--spec-json", help="Also write the chart spec as JSON"),
) -> None:
    """Render the scatterplot of effect size against a predictor."""
    dataset = _load(dataset_path)
    state = initial_state(dataset)
    for control_id, value in (
        ("sp_y_var", y.value),
        ("sp_x_var", x.value),
        ("sp_color_var", color.value),
        ("std_vars", standardize),
        ("add_regression", regression),
    ):
        state = _apply(dataset, state, control_id, value)
    view = derive_scatter(dataset, state)
    console.print(f"[bold blue]Scatterplot[/bold blue]: {view.row_count} models")
    spec = build_scatter_chart(view, state.add_regression)
    _write_outputs(spec, output, spec_json)


if __name__ == "__main__":
    app()
