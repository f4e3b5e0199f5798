"""Schema validation for the results table.

This module provides a `DatasetValidator` class that checks a raw table
against the column layout the dashboard expects, along with a helper
function `validate_dataset_file` used by the ``msa validate`` command.
Validation covers required columns, numeric types, framework values,
model identifier uniqueness and completeness of the covariates.  Errors
make the table unusable; warnings and info messages are reported only.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd  # type: ignore
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .readers import DatasetError, read_table
from ..utils.logging import get_logger


console = Console()
logger = get_logger(__name__)

ESTIMATE_COLUMNS: List[str] = ["post_mean", "estimate", "se", "lower95", "higher95"]
CATEGORICAL_COLUMNS: List[str] = [
    "outcome",
    "temporal_window",
    "operationalisation",
    "typicality",
    "found_effect",
    "compelling",
]
CONTINUOUS_COLUMNS: List[str] = [
    "years_from_phd",
    "prior_belief",
    "phon_rating",
    "stat_rating",
    "all_rating",
]
REQUIRED_COLUMNS: List[str] = (
    ["model_id", "framework"] + ESTIMATE_COLUMNS + CATEGORICAL_COLUMNS + CONTINUOUS_COLUMNS
)
FRAMEWORK_VALUES = {"frequentist", "bayesian"}


class DatasetValidator:
    """
    Validate the results table before it is served.

    Validators accumulate errors, warnings, and info messages and can
    summarise results after performing checks. If `strict` is enabled,
    warnings are treated as errors when determining overall success.
    """

    def __init__(self, strict: bool = False, verbose: bool = True) -> None:
        self.strict = strict
        self.verbose = verbose
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.info: List[str] = []

    def _print(self, message: str) -> None:
        if self.verbose:
            console.print(message)

    def validate_columns(self, frame: pd.DataFrame) -> bool:
        """Check that every required column is present."""
        self._print("\n[cyan]Validating columns...[/cyan]")
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            self.errors.append(f"Missing columns: {', '.join(missing)}")
            self._print(f"[red]✗ {len(missing)} required columns missing[/red]")
            return False
        extra = [c for c in frame.columns if c not in REQUIRED_COLUMNS]
        if extra:
            self.info.append(f"Ignoring extra columns: {', '.join(map(str, extra))}")
        self._print(f"[green]✓ All {len(REQUIRED_COLUMNS)} required columns present[/green]")
        return True

    def validate_numeric(self, frame: pd.DataFrame) -> bool:
        """Check that estimate and covariate columns hold numbers."""
        self._print("\n[cyan]Validating numeric columns...[/cyan]")
        bad: List[str] = []
        for col in ESTIMATE_COLUMNS + CONTINUOUS_COLUMNS:
            if col not in frame.columns:
                continue
            coerced = pd.to_numeric(frame[col], errors="coerce")
            unparsable = int((coerced.isna() & frame[col].notna()).sum())
            if unparsable:
                bad.append(col)
                self.errors.append(f"Column '{col}' has {unparsable} non-numeric values")
        for col in ESTIMATE_COLUMNS:
            if col in frame.columns and frame[col].isna().any():
                self.warnings.append(f"Column '{col}' has {int(frame[col].isna().sum())} missing values")
        if bad:
            self._print(f"[red]✗ {len(bad)} columns not numeric[/red]")
            return False
        self._print("[green]✓ Numeric columns valid[/green]")
        return True

    def validate_frameworks(self, frame: pd.DataFrame) -> bool:
        """Check that ``framework`` only holds frequentist/bayesian."""
        self._print("\n[cyan]Validating frameworks...[/cyan]")
        if "framework" not in frame.columns:
            return False
        values = frame["framework"].dropna().astype(str).str.strip().str.lower()
        unknown = sorted(set(values) - FRAMEWORK_VALUES)
        if unknown:
            self.errors.append(f"Unknown framework values: {', '.join(unknown)}")
            self._print(f"[red]✗ {len(unknown)} unknown framework values[/red]")
            return False
        missing = int(frame["framework"].isna().sum())
        if missing:
            self.warnings.append(f"{missing} rows have no framework")
        self._print("[green]✓ Frameworks valid[/green]")
        return True

    def validate_model_ids(self, frame: pd.DataFrame) -> bool:
        """Check that every row has a unique ``model_id``."""
        self._print("\n[cyan]Validating model identifiers...[/cyan]")
        if "model_id" not in frame.columns:
            return False
        ids = frame["model_id"]
        ok = True
        if ids.isna().any():
            self.errors.append(f"{int(ids.isna().sum())} rows have no model_id")
            ok = False
        duplicated = ids[ids.duplicated(keep=False) & ids.notna()].astype(str).unique()
        if len(duplicated):
            shown = ", ".join(sorted(duplicated)[:5])
            self.errors.append(f"Duplicate model_id values: {shown}")
            ok = False
        if ok:
            self._print(f"[green]✓ {len(ids)} unique model identifiers[/green]")
        else:
            self._print("[red]✗ Model identifiers invalid[/red]")
        return ok

    def validate_completeness(self, frame: pd.DataFrame) -> bool:
        """Report missing covariate values; never fails on its own."""
        self._print("\n[cyan]Checking covariate completeness...[/cyan]")
        for col in CATEGORICAL_COLUMNS + CONTINUOUS_COLUMNS:
            if col not in frame.columns:
                continue
            missing = int(frame[col].isna().sum())
            if missing == len(frame) and len(frame) > 0:
                self.warnings.append(f"Column '{col}' is entirely missing")
            elif missing:
                self.info.append(f"Column '{col}': {missing}/{len(frame)} missing")
        if len(frame) == 0:
            self.warnings.append("Dataset has no rows")
        return True

    def validate(self, frame: pd.DataFrame) -> bool:
        """Run every check and return overall success."""
        if not self.validate_columns(frame):
            return False
        results = [
            self.validate_numeric(frame),
            self.validate_frameworks(frame),
            self.validate_model_ids(frame),
            self.validate_completeness(frame),
        ]
        return all(results) and not (self.strict and self.warnings)

    def print_summary(self) -> None:
        """Print a summary table of errors, warnings and info."""
        table = Table(title="Validation Summary")
        table.add_column("Level", style="bold")
        table.add_column("Message")
        for msg in self.errors:
            table.add_row("[red]error[/red]", msg)
        for msg in self.warnings:
            table.add_row("[yellow]warning[/yellow]", msg)
        for msg in self.info:
            table.add_row("[blue]info[/blue]", msg)
        console.print(table)


def validate_dataset_file(path: Path, strict: bool = False) -> bool:
    """Validate a dataset file and print a report.

    Returns ``True`` when the table can be served by the dashboard.
    """
    console.print(Panel(f"Validating [bold]{path}[/bold]", expand=False))
    try:
        frame = read_table(path)
    except DatasetError as e:
        console.print(f"[red]✗ {e}[/red]")
        logger.error(f"Dataset validation failed: {e}")
        return False
    validator = DatasetValidator(strict=strict)
    passed = validator.validate(frame)
    validator.print_summary()
    console.print(f"Rows: {len(frame)}")
    return passed
