"""Row and frame builders for results-table tests."""

from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd


COLUMNS = [
    "model_id", "framework", "post_mean", "estimate", "se", "lower95", "higher95",
    "outcome", "temporal_window", "operationalisation", "typicality", "found_effect", "compelling",
    "years_from_phd", "prior_belief", "phon_rating", "stat_rating", "all_rating",
]


def make_row(model_id: str, **fields: Any) -> Dict[str, Any]:
    """Helper to construct one results row with neutral defaults."""
    row: Dict[str, Any] = {
        "model_id": model_id,
        "framework": "frequentist",
        "post_mean": 0.0,
        "estimate": 0.0,
        "se": 0.1,
        "lower95": -0.2,
        "higher95": 0.2,
        "outcome": "f0",
        "temporal_window": "word",
        "operationalisation": "mean",
        "typicality": "typical",
        "found_effect": "yes",
        "compelling": "compelling",
        "years_from_phd": 1.0,
        "prior_belief": 50.0,
        "phon_rating": 3.0,
        "stat_rating": 3.0,
        "all_rating": 3.0,
    }
    row.update(fields)
    return row


def make_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=COLUMNS)
