"""Chart Spec Builder.

Translates a derived view and the toggle controls into a
:class:`~msa.charts.spec.ChartSpec`.  The toggles are first resolved to
a variant tag through a lookup table; each tag owns a layer factory in
a dispatch table, so every reachable chart can be built and tested on
its own.  No data is transformed here.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Tuple

from ..core.labels import FOREST_CAPTION
from ..core.models import VisualParams
from ..views.derive import ForestView, ScatterView
from ..utils.logging import get_logger
from .spec import ChartSpec, ColorScale, Layer, LayerKind, Legend, MarkerShape, frame_records

logger = get_logger(__name__)

POST_PLOT = "postPlot"
SCATTER_PLOT = "scatterPlot"

SUBMITTED_COLOR = "grey"
INTERVAL_Z = 1.96
SCATTER_POINT_SIZE = 4.0
SCATTER_POINT_ALPHA = 0.3
REGRESSION_LINEWIDTH = 1.0


class ForestVariant(str, Enum):
    """Reachable forest plot layouts."""

    SUBMITTED_WITH_INTERVALS = "submitted_with_intervals"
    SUBMITTED_NO_INTERVALS = "submitted_no_intervals"
    POSTERIOR_WITH_INTERVALS = "posterior_with_intervals"
    POSTERIOR_NO_INTERVALS = "posterior_no_intervals"


class ScatterVariant(str, Enum):
    """Reachable scatterplot layouts."""

    PLAIN = "plain"
    COLORED = "colored"
    REGRESSION = "regression"
    COLORED_REGRESSION = "colored_regression"


# (include_submitted, hide_intervals) -> variant
FOREST_VARIANTS: Dict[Tuple[bool, bool], ForestVariant] = {
    (True, False): ForestVariant.SUBMITTED_WITH_INTERVALS,
    (True, True): ForestVariant.SUBMITTED_NO_INTERVALS,
    (False, False): ForestVariant.POSTERIOR_WITH_INTERVALS,
    (False, True): ForestVariant.POSTERIOR_NO_INTERVALS,
}

# (add_regression, colored) -> variant
SCATTER_VARIANTS: Dict[Tuple[bool, bool], ScatterVariant] = {
    (False, False): ScatterVariant.PLAIN,
    (False, True): ScatterVariant.COLORED,
    (True, False): ScatterVariant.REGRESSION,
    (True, True): ScatterVariant.COLORED_REGRESSION,
}


def forest_variant(include_submitted: bool, hide_intervals: bool) -> ForestVariant:
    return FOREST_VARIANTS[(bool(include_submitted), bool(hide_intervals))]


def scatter_variant(add_regression: bool, colored: bool) -> ScatterVariant:
    return SCATTER_VARIANTS[(bool(add_regression), bool(colored))]


# -----------------------------------------------------------------------------
# Forest plot layers
# -----------------------------------------------------------------------------

def _reference_line() -> Layer:
    return Layer(
        kind=LayerKind.REFERENCE_LINE,
        name="zero_line",
        intercept=0.0,
        line_style="dotted",
        alpha=0.5,
    )


def _submitted_intervals(params: VisualParams) -> Layer:
    return Layer(
        kind=LayerKind.SEGMENT,
        name="submitted_intervals",
        x="model_id",
        y="estimate",
        spread_field="se",
        spread=INTERVAL_Z,
        fixed_color=SUBMITTED_COLOR,
        linewidth=params.line_size,
        alpha=0.1,
    )


def _submitted_points(params: VisualParams) -> Layer:
    return Layer(
        kind=LayerKind.POINT,
        name="submitted_points",
        x="model_id",
        y="estimate",
        fixed_color=SUBMITTED_COLOR,
        shape=MarkerShape.TRIANGLE,
        size=params.point_size,
        alpha=0.2,
    )


def _posterior_intervals(params: VisualParams) -> Layer:
    return Layer(
        kind=LayerKind.SEGMENT,
        name="posterior_intervals",
        x="model_id",
        y="lower95",
        y_end="higher95",
        color_by="color_var",
        linewidth=params.line_size,
        alpha=0.5,
    )


def _posterior_points(params: VisualParams) -> Layer:
    return Layer(
        kind=LayerKind.POINT,
        name="posterior_points",
        x="model_id",
        y="post_mean",
        color_by="color_var",
        shape=MarkerShape.OPEN_CIRCLE,
        size=params.point_size,
        stroke=params.line_size,
        show_legend=True,
    )


def _forest_submitted_with_intervals(params: VisualParams) -> List[Layer]:
    return [
        _reference_line(),
        _submitted_intervals(params),
        _submitted_points(params),
        _posterior_intervals(params),
        _posterior_points(params),
    ]


def _forest_submitted_no_intervals(params: VisualParams) -> List[Layer]:
    return [_reference_line(), _submitted_points(params), _posterior_points(params)]


def _forest_posterior_with_intervals(params: VisualParams) -> List[Layer]:
    return [_reference_line(), _posterior_intervals(params), _posterior_points(params)]


def _forest_posterior_no_intervals(params: VisualParams) -> List[Layer]:
    return [_reference_line(), _posterior_points(params)]


FOREST_LAYERS: Dict[ForestVariant, Callable[[VisualParams], List[Layer]]] = {
    ForestVariant.SUBMITTED_WITH_INTERVALS: _forest_submitted_with_intervals,
    ForestVariant.SUBMITTED_NO_INTERVALS: _forest_submitted_no_intervals,
    ForestVariant.POSTERIOR_WITH_INTERVALS: _forest_posterior_with_intervals,
    ForestVariant.POSTERIOR_NO_INTERVALS: _forest_posterior_no_intervals,
}


def build_forest_chart(view: ForestView, include_submitted: bool, hide_intervals: bool) -> ChartSpec:
    """Assemble the ``postPlot`` spec for a forest view."""
    variant = forest_variant(include_submitted, hide_intervals)
    categories = sorted({str(v) for v in view.rows["color_var"].dropna()}) if view.row_count else []
    spec = ChartSpec(
        output_id=POST_PLOT,
        variant=variant.value,
        theme="classic",
        x_label=view.x_label,
        y_label=view.y_label,
        caption=FOREST_CAPTION if include_submitted else None,
        hide_x_ticks=True,
        x_categories=list(view.model_order),
        layers=FOREST_LAYERS[variant](view.params),
        legend=Legend(show=True, ncol=4, position="lower right", marker_size=6.0),
        color_scale=ColorScale(categories=categories),
        params=view.params.model_dump(),
        row_count=view.row_count,
        data=frame_records(view.rows),
    )
    logger.debug(f"Built {POST_PLOT} variant={variant.value} rows={view.row_count}")
    return spec


# -----------------------------------------------------------------------------
# Scatterplot layers
# -----------------------------------------------------------------------------

def _scatter_points(colored: bool) -> Layer:
    return Layer(
        kind=LayerKind.POINT,
        name="points",
        x="x",
        y="y",
        color_by="color_var" if colored else None,
        shape=MarkerShape.CIRCLE,
        size=SCATTER_POINT_SIZE,
        alpha=SCATTER_POINT_ALPHA,
        show_legend=colored,
    )


def _scatter_plain() -> List[Layer]:
    return [_scatter_points(colored=False)]


def _scatter_colored() -> List[Layer]:
    return [_scatter_points(colored=True)]


def _scatter_regression() -> List[Layer]:
    return [
        _scatter_points(colored=False),
        Layer(
            kind=LayerKind.REGRESSION,
            name="regression",
            x="x",
            y="y",
            linewidth=REGRESSION_LINEWIDTH,
        ),
    ]


def _scatter_colored_regression() -> List[Layer]:
    # One line per group across the full x range, beneath the points
    return [
        Layer(
            kind=LayerKind.REGRESSION,
            name="regression",
            x="x",
            y="y",
            color_by="color_var",
            linewidth=REGRESSION_LINEWIDTH,
            full_range=True,
        ),
        _scatter_points(colored=True),
    ]


SCATTER_LAYERS: Dict[ScatterVariant, Callable[[], List[Layer]]] = {
    ScatterVariant.PLAIN: _scatter_plain,
    ScatterVariant.COLORED: _scatter_colored,
    ScatterVariant.REGRESSION: _scatter_regression,
    ScatterVariant.COLORED_REGRESSION: _scatter_colored_regression,
}


def build_scatter_chart(view: ScatterView, add_regression: bool) -> ChartSpec:
    """Assemble the ``scatterPlot`` spec for a scatter view."""
    variant = scatter_variant(add_regression, view.colored)
    color_scale = None
    if view.colored:
        categories = sorted({str(v) for v in view.rows["color_var"].dropna()}) if view.row_count else []
        color_scale = ColorScale(categories=categories)
    spec = ChartSpec(
        output_id=SCATTER_PLOT,
        variant=variant.value,
        theme="minimal",
        x_label=view.x_label,
        y_label=view.y_label,
        layers=SCATTER_LAYERS[variant](),
        legend=Legend(show=view.colored, ncol=4, position="upper left", marker_size=5.0),
        color_scale=color_scale,
        row_count=view.row_count,
        data=frame_records(view.rows),
    )
    logger.debug(f"Built {SCATTER_PLOT} variant={variant.value} rows={view.row_count}")
    return spec
