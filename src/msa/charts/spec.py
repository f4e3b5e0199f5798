"""Chart specification models.

A :class:`ChartSpec` is a complete, declarative description of one
chart: its layers in draw order, axis labels, legend and palette, plus
the rows to draw.  It is what the web API returns for an output and
what :mod:`msa.charts.render` turns into pixels.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field


class LayerKind(str, Enum):
    """Geometric layer types."""

    REFERENCE_LINE = "reference_line"
    SEGMENT = "segment"
    POINT = "point"
    REGRESSION = "regression"


class MarkerShape(str, Enum):
    CIRCLE = "circle"
    OPEN_CIRCLE = "open_circle"
    TRIANGLE = "triangle"


class Layer(BaseModel):
    """One geometric layer.

    ``x``/``y``/``y_end`` name fields of the spec's ``data`` records;
    for reference lines ``intercept`` gives the constant y value.  A
    segment with ``spread_field`` runs from ``y - spread * spread_field``
    to ``y + spread * spread_field`` instead of ``y`` to ``y_end``.
    """

    kind: LayerKind
    name: str
    x: Optional[str] = None
    y: Optional[str] = None
    y_end: Optional[str] = None
    spread_field: Optional[str] = None
    spread: float = 0.0
    intercept: Optional[float] = None
    color_by: Optional[str] = Field(None, description="Field mapped to the color scale")
    fixed_color: Optional[str] = Field(None, description="Constant color when not mapped")
    shape: Optional[MarkerShape] = None
    size: Optional[float] = None
    linewidth: Optional[float] = None
    stroke: Optional[float] = None
    alpha: float = 1.0
    line_style: str = "solid"
    show_legend: bool = False
    full_range: bool = False


class Legend(BaseModel):
    """Category legend placement."""

    show: bool = False
    ncol: int = 4
    position: str = "lower right"
    direction: str = "horizontal"
    marker_size: float = 6.0


class ColorScale(BaseModel):
    """Discrete palette sampled from a matplotlib colormap."""

    name: str = "viridis"
    begin: float = 0.15
    end: float = 0.85
    categories: List[str] = Field(default_factory=list)


class ChartSpec(BaseModel):
    """Display instructions for one chart output."""

    output_id: str
    variant: str
    theme: str
    x_label: str
    y_label: str
    caption: Optional[str] = None
    hide_x_ticks: bool = False
    x_categories: List[str] = Field(default_factory=list)
    layers: List[Layer]
    legend: Legend
    color_scale: Optional[ColorScale] = None
    params: Dict[str, float] = Field(default_factory=dict)
    row_count: int = 0
    data: List[Dict[str, Any]] = Field(default_factory=list)

    def layer_names(self) -> List[str]:
        return [layer.name for layer in self.layers]

    def find_layer(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None


def _json_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if hasattr(value, "item"):
        return _json_value(value.item())
    return value


def frame_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert rows to JSON-safe records; missing and non-finite become ``None``."""
    records: List[Dict[str, Any]] = []
    for row in frame.astype(object).itertuples(index=False):
        records.append({
            str(col): (None if pd.isna(val) else _json_value(val))
            for col, val in zip(frame.columns, row)
        })
    return records
