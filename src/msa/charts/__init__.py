"""Chart specifications, the builder that assembles them and a renderer."""

from .builder import (  # noqa: F401
    ForestVariant,
    ScatterVariant,
    build_forest_chart,
    build_scatter_chart,
)
from .spec import ChartSpec, Layer, LayerKind, Legend  # noqa: F401
