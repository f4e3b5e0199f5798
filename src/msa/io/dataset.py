"""Read-only store for the per-model results table.

The table is loaded once at startup by :func:`load_dataset` and wrapped
in a :class:`Dataset`.  A dataset never exposes its underlying frame:
projections return copies and filters return a new dataset, so one
instance can be shared by every session without locking.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Mapping

import pandas as pd

from .readers import DatasetError, DatasetNotFoundError, DatasetSchemaError, read_table
from .validation import CATEGORICAL_COLUMNS, CONTINUOUS_COLUMNS, ESTIMATE_COLUMNS, DatasetValidator
from ..utils.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "Dataset",
    "DatasetError",
    "DatasetNotFoundError",
    "DatasetSchemaError",
    "load_dataset",
    "prepare_frame",
]

SENTENCE_CASE_COLUMNS = ["found_effect", "temporal_window", "operationalisation", "typicality"]


class Dataset:
    """Immutable, in-memory results table."""

    def __init__(self, frame: pd.DataFrame) -> None:
        self._frame = frame.reset_index(drop=True).copy()

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"Dataset(rows={len(self)}, columns={len(self.columns)})"

    @property
    def columns(self) -> List[str]:
        return [str(c) for c in self._frame.columns]

    def column(self, name: str) -> pd.Series:
        """Return a copy of a single column."""
        if name not in self._frame.columns:
            raise KeyError(f"Unknown column: {name}")
        return self._frame[name].copy()

    def project(self, columns: Mapping[str, str]) -> pd.DataFrame:
        """Select and rename columns.

        Args:
            columns: Mapping of output name to source column, in output
                order, e.g. ``{"y": "post_mean", "x": "prior_belief"}``.

        Returns:
            A new frame in source row order.
        """
        unknown = [src for src in columns.values() if src not in self._frame.columns]
        if unknown:
            raise KeyError(f"Unknown columns: {', '.join(unknown)}")
        projected = self._frame[list(columns.values())].copy()
        projected.columns = list(columns.keys())
        return projected

    def filter(self, predicate: Callable[[pd.DataFrame], pd.Series]) -> "Dataset":
        """Return a new dataset holding the rows where ``predicate`` is true.

        The predicate receives a copy of the table and must return a
        boolean Series aligned with it.
        """
        mask = predicate(self._frame.copy())
        return Dataset(self._frame[mask.fillna(False).astype(bool)])


def _sentence_case(value: str) -> str:
    return value.capitalize()


def _relabel_compelling(value: str) -> str:
    return "Not compelling" if value == "not compelling" else "Compelling"


def _order_models(frame: pd.DataFrame) -> pd.Categorical:
    """Order ``model_id`` levels by the median ``post_mean`` of each level."""
    ids = frame["model_id"].astype(str)
    medians = frame.assign(model_id=ids).groupby("model_id", sort=False)["post_mean"].median()
    levels = medians.sort_values(kind="stable", na_position="last").index.tolist()
    return pd.Categorical(ids, categories=levels, ordered=True)


def prepare_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Normalise a validated raw table for display.

    ``model_id`` becomes an ordered categorical sorted by posterior mean,
    numeric columns are coerced to floats, and categorical labels are
    cased for legends.  Missing values are left missing.
    """
    prepared = frame.copy()
    for col in ESTIMATE_COLUMNS + CONTINUOUS_COLUMNS:
        prepared[col] = pd.to_numeric(prepared[col], errors="coerce").astype(float)
    prepared["framework"] = prepared["framework"].astype(object).map(
        lambda v: str(v).strip().lower(), na_action="ignore"
    )
    for col in CATEGORICAL_COLUMNS:
        prepared[col] = prepared[col].astype(object).map(str, na_action="ignore")
    prepared["compelling"] = prepared["compelling"].map(_relabel_compelling, na_action="ignore")
    prepared["outcome"] = prepared["outcome"].map(str.title, na_action="ignore")
    for col in SENTENCE_CASE_COLUMNS:
        prepared[col] = prepared[col].map(_sentence_case, na_action="ignore")
    prepared["model_id"] = _order_models(prepared)
    return prepared


def load_dataset(path: Path) -> Dataset:
    """Load, validate and prepare the results table.

    Raises:
        DatasetNotFoundError: if the file is missing.
        DatasetSchemaError: if the file cannot be parsed or fails
            validation.
    """
    path = Path(path)
    logger.info(f"Loading dataset from {path}")
    frame = read_table(path)
    validator = DatasetValidator(verbose=False)
    if not validator.validate(frame):
        raise DatasetSchemaError(f"Dataset {path} failed validation: {'; '.join(validator.errors)}")
    for warning in validator.warnings:
        logger.warning(warning)
    dataset = Dataset(prepare_frame(frame))
    logger.info(f"Loaded {len(dataset)} models from {path}")
    return dataset
