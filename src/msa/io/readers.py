"""Reading the serialized results table from disk."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pandas as pd


class DatasetError(Exception):
    """Base class for dataset loading failures."""


class DatasetNotFoundError(DatasetError):
    """The dataset file does not exist."""


class DatasetSchemaError(DatasetError):
    """The dataset file could not be parsed or does not match the schema."""


def _read_json(path: Path) -> pd.DataFrame:
    return pd.read_json(path, orient="records")


READERS: Dict[str, Callable[[Path], pd.DataFrame]] = {
    ".parquet": pd.read_parquet,
    ".csv": pd.read_csv,
    ".feather": pd.read_feather,
    ".json": _read_json,
}


def read_table(path: Path) -> pd.DataFrame:
    """Read a tabular file, dispatching on its suffix.

    Raises:
        DatasetNotFoundError: if ``path`` does not exist.
        DatasetSchemaError: if the format is unsupported or parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise DatasetNotFoundError(f"Dataset file not found: {path}")
    reader = READERS.get(path.suffix.lower())
    if reader is None:
        supported = ", ".join(sorted(READERS))
        raise DatasetSchemaError(f"Unsupported dataset format '{path.suffix}' (expected one of {supported})")
    try:
        return reader(path)
    except Exception as e:
        raise DatasetSchemaError(f"Failed to read {path}: {e}") from e
