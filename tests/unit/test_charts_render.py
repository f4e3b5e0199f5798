"""Unit tests for matplotlib rendering."""

from pathlib import Path

import pytest
from matplotlib import colormaps

from msa.charts.builder import build_forest_chart, build_scatter_chart
from msa.charts.render import MM_TO_PT, draw_chart, palette, render_chart, save_chart
from msa.charts.spec import ColorScale
from msa.core.models import Framework, ScatterColorFactor, SelectionState
from msa.io.dataset import Dataset
from msa.views.derive import derive_forest, derive_scatter

from tests.factories import make_frame, make_row

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def forest_spec(dataset: Dataset, **state):
    state = SelectionState(**state)
    return build_forest_chart(derive_forest(dataset, state), state.include_submitted, state.hide_intervals)


def scatter_spec(dataset: Dataset, **state):
    state = SelectionState(**state)
    return build_scatter_chart(derive_scatter(dataset, state), state.add_regression)


class TestPalette:
    def test_one_color_per_category(self) -> None:
        colors = palette(ColorScale(categories=["a", "b", "c"]))
        assert list(colors) == ["a", "b", "c"]
        assert len(set(colors.values())) == 3

    def test_empty(self) -> None:
        assert palette(None) == {}
        assert palette(ColorScale(categories=[])) == {}

    def test_single_category_uses_begin(self) -> None:
        colors = palette(ColorScale(categories=["only"]))
        assert colors["only"] == colormaps["viridis"](0.15)


class TestRenderChart:
    """Tests for image output."""

    @pytest.mark.parametrize("include_submitted", [True, False])
    @pytest.mark.parametrize("hide_intervals", [True, False])
    def test_forest_png(self, dataset: Dataset, include_submitted: bool, hide_intervals: bool) -> None:
        spec = forest_spec(
            dataset,
            active_categories=["duration", "f0", "intensity"],
            include_submitted=include_submitted,
            hide_intervals=hide_intervals,
        )
        image = render_chart(spec, width=400, height=200, dpi=50)
        assert image.startswith(PNG_MAGIC)

    @pytest.mark.parametrize("color", [ScatterColorFactor.NONE, ScatterColorFactor.OUTCOME])
    @pytest.mark.parametrize("add_regression", [True, False])
    def test_scatter_png(self, dataset: Dataset, color: ScatterColorFactor, add_regression: bool) -> None:
        spec = scatter_spec(dataset, scatter_color_factor=color, add_regression=add_regression)
        assert render_chart(spec, width=400, height=300, dpi=50).startswith(PNG_MAGIC)

    def test_empty_forest(self, dataset: Dataset) -> None:
        spec = forest_spec(dataset, framework=Framework.BAYESIAN, active_categories=[])
        assert render_chart(spec, width=300, height=200, dpi=50).startswith(PNG_MAGIC)

    def test_non_finite_x_skipped(self) -> None:
        dataset = Dataset(make_frame([make_row("m1", years_from_phd=4.0)]))
        spec = scatter_spec(dataset, standardize_x=True, add_regression=True)
        assert spec.data[0]["x"] is None
        assert render_chart(spec, width=300, height=200, dpi=50).startswith(PNG_MAGIC)

    def test_negative_sizes_clamped(self) -> None:
        rows = [make_row(f"m{i:03d}", post_mean=i / 1000) for i in range(400)]
        spec = forest_spec(Dataset(make_frame(rows)), active_categories=["f0"])
        assert spec.params["point_size"] < 0
        assert render_chart(spec, width=400, height=200, dpi=50).startswith(PNG_MAGIC)

    def test_caption_drawn_only_with_submitted(self, dataset: Dataset) -> None:
        categories = ["duration", "f0", "intensity"]
        with_caption = draw_chart(forest_spec(dataset, active_categories=categories), 400, 200, 50)
        without = draw_chart(
            forest_spec(dataset, active_categories=categories, include_submitted=False), 400, 200, 50
        )
        assert len(with_caption.texts) == 1
        assert len(without.texts) == 0

    def test_save_svg(self, dataset: Dataset, tmp_path: Path) -> None:
        spec = scatter_spec(dataset)
        path = save_chart(spec, tmp_path / "charts" / "scatterPlot.svg", width=300, height=200, dpi=50)
        assert path.exists()
        assert b"<svg" in path.read_bytes()

    def test_open_circle_stroke_in_millimetres(self, dataset: Dataset) -> None:
        spec = forest_spec(
            dataset,
            active_categories=["duration", "f0", "intensity"],
            include_submitted=False,
            hide_intervals=True,
        )
        stroke = spec.find_layer("posterior_points").stroke
        ax = draw_chart(spec, 400, 200, 50).axes[0]
        assert len(ax.collections) == 1
        assert ax.collections[0].get_linewidths()[0] == pytest.approx(stroke * MM_TO_PT)

    def test_grouped_regression_lines_use_layer_alpha(self, dataset: Dataset) -> None:
        spec = scatter_spec(dataset, scatter_color_factor=ScatterColorFactor.OUTCOME, add_regression=True)
        layers = [
            layer.model_copy(update={"alpha": 0.4}) if layer.name == "regression" else layer
            for layer in spec.layers
        ]
        spec = spec.model_copy(update={"layers": layers})
        lines = draw_chart(spec, 400, 300, 50).axes[0].get_lines()
        assert lines
        assert all(line.get_alpha() == pytest.approx(0.4) for line in lines)
