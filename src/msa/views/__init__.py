"""View derivation: filtered rows, visual parameters and labels.

Every function in this package is pure; views are recomputed from the
dataset and the selection state on each render.
"""

from .derive import (  # noqa: F401
    ForestView,
    ScatterView,
    available_categories,
    derive_forest,
    derive_scatter,
    forest_view,
    model_order,
    scatter_view,
    visual_params,
)
