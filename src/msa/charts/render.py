"""Matplotlib rendering of chart specs.

This module turns a :class:`~msa.charts.spec.ChartSpec` into PNG or SVG
bytes.  Sizes in a spec use ggplot-style millimetre units and are
converted to points here; negative sizes from very large views are
clamped to zero.  Rows with missing or non-finite coordinates are not
drawn.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from matplotlib import colormaps
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from scipy import stats

from ..config.settings import settings
from ..utils.logging import get_logger
from .spec import ChartSpec, ColorScale, Layer, LayerKind, MarkerShape

logger = get_logger(__name__)

# Points per millimetre
MM_TO_PT = 72.27 / 25.4

MARKERS: Dict[MarkerShape, str] = {
    MarkerShape.CIRCLE: "o",
    MarkerShape.OPEN_CIRCLE: "o",
    MarkerShape.TRIANGLE: "^",
}

LINE_STYLES: Dict[str, str] = {"solid": "-", "dotted": ":", "dashed": "--"}


def _clamp(value: Optional[float]) -> float:
    return max(0.0, float(value or 0.0))


def palette(scale: Optional[ColorScale]) -> Dict[str, tuple]:
    """Map each category to an RGBA color sampled from the colormap."""
    if scale is None or not scale.categories:
        return {}
    cmap = colormaps[scale.name]
    n = len(scale.categories)
    positions = np.linspace(scale.begin, scale.end, n) if n > 1 else [scale.begin]
    return {category: cmap(pos) for category, pos in zip(scale.categories, positions)}


def _frame(spec: ChartSpec) -> pd.DataFrame:
    return pd.DataFrame.from_records(spec.data) if spec.data else pd.DataFrame()


def _numeric(frame: pd.DataFrame, column: str) -> np.ndarray:
    return pd.to_numeric(frame[column], errors="coerce").to_numpy(dtype=float)


def _x_positions(spec: ChartSpec, frame: pd.DataFrame, column: str) -> np.ndarray:
    if spec.x_categories:
        index = {category: i for i, category in enumerate(spec.x_categories)}
        return np.array([index.get(str(v), np.nan) for v in frame[column]], dtype=float)
    return _numeric(frame, column)


def _colors(frame: pd.DataFrame, layer: Layer, colors: Dict[str, tuple]) -> List:
    if layer.color_by and layer.color_by in frame.columns:
        return [colors.get(str(v), "black") for v in frame[layer.color_by]]
    return [layer.fixed_color or "black"] * len(frame)


def _draw_segments(ax, spec: ChartSpec, frame: pd.DataFrame, layer: Layer, colors: Dict[str, tuple]) -> None:
    x = _x_positions(spec, frame, layer.x)
    y = _numeric(frame, layer.y)
    if layer.spread_field:
        half = layer.spread * _numeric(frame, layer.spread_field)
        y0, y1 = y - half, y + half
    else:
        y0, y1 = y, _numeric(frame, layer.y_end)
    keep = np.isfinite(x) & np.isfinite(y0) & np.isfinite(y1)
    if not keep.any():
        return
    color_list = [c for c, k in zip(_colors(frame, layer, colors), keep) if k]
    lines = ax.vlines(
        x[keep], y0[keep], y1[keep],
        colors=color_list,
        linewidth=_clamp(layer.linewidth) * MM_TO_PT,
        alpha=layer.alpha,
    )
    lines.set_capstyle("round")


def _draw_points(ax, spec: ChartSpec, frame: pd.DataFrame, layer: Layer, colors: Dict[str, tuple]) -> None:
    x = _x_positions(spec, frame, layer.x)
    y = _numeric(frame, layer.y)
    keep = np.isfinite(x) & np.isfinite(y)
    if not keep.any():
        return
    color_list = [c for c, k in zip(_colors(frame, layer, colors), keep) if k]
    area = (_clamp(layer.size) * MM_TO_PT) ** 2
    marker = MARKERS.get(layer.shape or MarkerShape.CIRCLE, "o")
    if layer.shape is MarkerShape.OPEN_CIRCLE:
        ax.scatter(
            x[keep], y[keep], s=area, marker=marker,
            facecolors="none", edgecolors=color_list,
            linewidths=_clamp(layer.stroke) * MM_TO_PT, alpha=layer.alpha,
        )
    else:
        ax.scatter(
            x[keep], y[keep], s=area, marker=marker,
            c=color_list, linewidths=0, alpha=layer.alpha,
        )


def _fit_line(x: np.ndarray, y: np.ndarray, x_range: tuple) -> Optional[tuple]:
    if len(np.unique(x)) < 2:
        return None
    fit = stats.linregress(x, y)
    xs = np.array(x_range, dtype=float)
    return xs, fit.intercept + fit.slope * xs


def _draw_regression(ax, spec: ChartSpec, frame: pd.DataFrame, layer: Layer, colors: Dict[str, tuple]) -> None:
    x = _numeric(frame, layer.x)
    y = _numeric(frame, layer.y)
    keep = np.isfinite(x) & np.isfinite(y)
    if not keep.any():
        return
    full_range = (float(x[keep].min()), float(x[keep].max()))
    linewidth = _clamp(layer.linewidth) * MM_TO_PT
    if layer.color_by and layer.color_by in frame.columns:
        groups = frame[layer.color_by].astype(str).to_numpy()
        for group in pd.unique(groups[keep]):
            mask = keep & (groups == group)
            x_range = full_range if layer.full_range else (x[mask].min(), x[mask].max())
            line = _fit_line(x[mask], y[mask], x_range)
            if line is not None:
                ax.plot(*line, color=colors.get(group, "black"), linewidth=linewidth, alpha=layer.alpha)
        return
    x_range = full_range if layer.full_range else (x[keep].min(), x[keep].max())
    line = _fit_line(x[keep], y[keep], x_range)
    if line is not None:
        ax.plot(*line, color="#3366FF", linewidth=linewidth, alpha=layer.alpha)


def _draw_reference(ax, layer: Layer) -> None:
    ax.axhline(
        layer.intercept or 0.0,
        linestyle=LINE_STYLES.get(layer.line_style, "-"),
        color="black",
        linewidth=0.8,
        alpha=layer.alpha,
    )


def _apply_theme(ax, spec: ChartSpec) -> None:
    if spec.theme == "classic":
        for side in ("top", "right", "bottom", "left"):
            ax.spines[side].set_visible(False)
    else:
        for spine in ax.spines.values():
            spine.set_visible(False)
        ax.grid(True, color="0.9", linewidth=0.4)
        ax.set_axisbelow(True)
    if spec.hide_x_ticks:
        ax.set_xticks([])
    if spec.x_categories:
        # 1% expansion either side of the first and last model
        pad = max(len(spec.x_categories) - 1, 1) * 0.01
        ax.set_xlim(-pad, len(spec.x_categories) - 1 + pad)


def _draw_legend(ax, spec: ChartSpec, colors: Dict[str, tuple]) -> None:
    if not spec.legend.show or not colors:
        return
    handles = [
        Line2D([], [], marker="o", linestyle="", color=color, markersize=spec.legend.marker_size * 2, label=category)
        for category, color in colors.items()
    ]
    ax.legend(
        handles=handles,
        ncol=spec.legend.ncol,
        loc=spec.legend.position,
        frameon=False,
    )


def draw_chart(spec: ChartSpec, width: Optional[int] = None, height: Optional[int] = None, dpi: Optional[int] = None) -> Figure:
    """Draw ``spec`` onto a new matplotlib figure."""
    width = width or settings.plot_width
    height = height or settings.plot_height
    dpi = dpi or settings.plot_dpi
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax = fig.add_subplot(1, 1, 1)
    frame = _frame(spec)
    colors = palette(spec.color_scale)
    for layer in spec.layers:
        if layer.kind is LayerKind.REFERENCE_LINE:
            _draw_reference(ax, layer)
        elif frame.empty:
            continue
        elif layer.kind is LayerKind.SEGMENT:
            _draw_segments(ax, spec, frame, layer, colors)
        elif layer.kind is LayerKind.POINT:
            _draw_points(ax, spec, frame, layer, colors)
        elif layer.kind is LayerKind.REGRESSION:
            _draw_regression(ax, spec, frame, layer, colors)
    ax.set_xlabel(spec.x_label)
    ax.set_ylabel(spec.y_label)
    _apply_theme(ax, spec)
    _draw_legend(ax, spec, colors)
    if spec.caption:
        fig.text(0.99, 0.01, spec.caption.rstrip("\n"), ha="right", va="bottom", fontsize=9)
    fig.tight_layout(rect=(0, 0.08 if spec.caption else 0, 1, 1))
    return fig


def render_chart(
    spec: ChartSpec,
    fmt: str = "png",
    width: Optional[int] = None,
    height: Optional[int] = None,
    dpi: Optional[int] = None,
) -> bytes:
    """Render ``spec`` to image bytes in ``fmt`` (``png`` or ``svg``)."""
    fig = draw_chart(spec, width=width, height=height, dpi=dpi)
    buffer = io.BytesIO()
    fig.savefig(buffer, format=fmt)
    logger.debug(f"Rendered {spec.output_id} ({spec.variant}) as {fmt}, {spec.row_count} rows")
    return buffer.getvalue()


def save_chart(spec: ChartSpec, output_path: Path, **kwargs) -> Path:
    """Render ``spec`` and write it to ``output_path``; format follows the suffix."""
    output_path = Path(output_path)
    fmt = output_path.suffix.lstrip(".").lower() or "png"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(render_chart(spec, fmt=fmt, **kwargs))
    return output_path
