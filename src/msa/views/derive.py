"""Derived views over the results table.

Everything here is a pure function of a :class:`~msa.io.dataset.Dataset`
and the current selection: given the same inputs the same rows come
back in the same order.  Views are recomputed on every control change
and never cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

import numpy as np
import pandas as pd

from ..core.labels import FOREST_Y_LABEL, scatter_x_label, scatter_y_label, x_label
from ..core.models import (
    ColorFactor,
    EffectVar,
    Framework,
    Predictor,
    ScatterColorFactor,
    SelectionState,
    VisualParams,
)
from ..io.dataset import Dataset

FOREST_COLUMNS = ["post_mean", "model_id", "estimate", "se", "lower95", "higher95"]


@dataclass(frozen=True)
class ForestView:
    """Rows and display parameters for one forest plot render."""

    rows: pd.DataFrame
    params: VisualParams
    x_label: str
    y_label: str
    model_order: List[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class ScatterView:
    """Rows and axis labels for one scatterplot render."""

    rows: pd.DataFrame
    x_label: str
    y_label: str
    colored: bool

    @property
    def row_count(self) -> int:
        return len(self.rows)


def available_categories(dataset: Dataset, factor: ColorFactor) -> List[str]:
    """Distinct non-missing values of ``factor``, ascending."""
    values = dataset.column(ColorFactor(factor).value).dropna()
    return sorted({str(v) for v in values})


def forest_view(
    dataset: Dataset,
    framework: Framework,
    color_factor: ColorFactor,
    active_categories: Iterable[str],
) -> pd.DataFrame:
    """Rows for the forest plot.

    Filters by framework (``Any`` keeps every row), projects the estimate
    columns plus the factor as ``color_var`` and keeps rows whose
    ``color_var`` is present and checked.
    """
    framework = Framework(framework)
    if framework is not Framework.ANY:
        wanted = framework.value.lower()
        dataset = dataset.filter(lambda df: df["framework"].astype("string").str.lower() == wanted)
    columns = {col: col for col in FOREST_COLUMNS}
    columns["color_var"] = ColorFactor(color_factor).value
    rows = dataset.project(columns)
    active = sorted(set(active_categories))
    keep = rows["color_var"].notna() & rows["color_var"].astype(str).isin(active)
    return rows[keep].reset_index(drop=True)


def scatter_view(
    dataset: Dataset,
    y_var: EffectVar,
    x_var: Predictor,
    color_factor: ScatterColorFactor,
    standardize: bool,
) -> pd.DataFrame:
    """Rows for the scatterplot.

    With ``standardize`` the predictor is z-scored over the rows that
    survive filtering, using the sample standard deviation.  Fewer than
    two rows, or a constant predictor, give non-finite ``x`` values.
    """
    columns = {"y": EffectVar(y_var).value, "x": Predictor(x_var).value}
    factor = ScatterColorFactor(color_factor).factor
    if factor is not None:
        columns["color_var"] = factor.value
    rows = dataset.project(columns)
    rows = rows.dropna(subset=list(columns)).reset_index(drop=True)
    rows["x"] = rows["x"].astype(float)
    rows["y"] = rows["y"].astype(float)
    if standardize:
        with np.errstate(divide="ignore", invalid="ignore"):
            rows["x"] = (rows["x"] - rows["x"].mean()) / rows["x"].std(ddof=1)
    return rows


def visual_params(row_count: int) -> VisualParams:
    """Marker and line sizes that shrink as more models are plotted."""
    scale = row_count / 100
    return VisualParams(
        point_size=2.90 - scale,
        line_size=2.75 - scale,
        stroke_size=2.50 - scale,
    )


def model_order(rows: pd.DataFrame) -> List[str]:
    """``model_id`` levels present in ``rows``, lowest posterior mean first."""
    if rows.empty:
        return []
    ids = rows["model_id"]
    if isinstance(ids.dtype, pd.CategoricalDtype) and ids.cat.ordered:
        present = set(ids.dropna().astype(str))
        return [str(level) for level in ids.cat.categories if str(level) in present]
    ordered = rows.sort_values("post_mean", kind="stable", na_position="last")
    return [str(v) for v in ordered["model_id"]]


def derive_forest(dataset: Dataset, state: SelectionState) -> ForestView:
    """Bundle the forest plot rows with their display parameters."""
    rows = forest_view(dataset, state.framework, state.color_factor, state.active_categories)
    return ForestView(
        rows=rows,
        params=visual_params(len(rows)),
        x_label=x_label(state.framework),
        y_label=FOREST_Y_LABEL,
        model_order=model_order(rows),
    )


def derive_scatter(dataset: Dataset, state: SelectionState) -> ScatterView:
    rows = scatter_view(
        dataset,
        state.scatter_y_var,
        state.scatter_x_var,
        state.scatter_color_factor,
        state.standardize_x,
    )
    return ScatterView(
        rows=rows,
        x_label=scatter_x_label(state.scatter_x_var),
        y_label=scatter_y_label(state.scatter_y_var),
        colored=state.scatter_color_factor is not ScatterColorFactor.NONE,
    )
