"""Shared fixtures: a small results table covering both frameworks,
several categories and missing covariates."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from msa.io.dataset import Dataset, prepare_frame

from tests.factories import make_frame, make_row


SAMPLE_ROWS = [
    make_row("A01", framework="frequentist", post_mean=0.10, estimate=0.20, se=0.05,
             lower95=-0.02, higher95=0.22, outcome="f0", years_from_phd=1.0, prior_belief=50.0),
    make_row("A02", framework="bayesian", post_mean=-0.05, estimate=-0.10, se=0.08,
             lower95=-0.20, higher95=0.10, outcome="duration", temporal_window="sentence",
             operationalisation="max", typicality="atypical", found_effect="no",
             compelling="not compelling", years_from_phd=2.0, prior_belief=70.0),
    make_row("A03", framework="frequentist", post_mean=0.30, estimate=0.45, se=0.10,
             lower95=0.10, higher95=0.50, outcome="f0", operationalisation="slope",
             years_from_phd=3.0, prior_belief=np.nan),
    make_row("A04", framework="bayesian", post_mean=0.00, estimate=0.05, se=0.04,
             lower95=-0.08, higher95=0.08, outcome=None, temporal_window="syllable",
             typicality=None, found_effect="no", compelling=None, years_from_phd=10.0,
             prior_belief=60.0, phon_rating=np.nan),
    make_row("A05", framework="frequentist", post_mean=0.15, estimate=0.10, se=0.06,
             lower95=0.03, higher95=0.27, outcome="intensity", temporal_window="sentence",
             operationalisation="range", typicality="atypical", found_effect=None,
             years_from_phd=np.nan, prior_belief=40.0),
    make_row("A06", framework="bayesian", post_mean=0.22, estimate=0.30, se=0.09,
             lower95=0.05, higher95=0.39, outcome="f0", compelling="not compelling",
             years_from_phd=7.0, prior_belief=80.0, phon_rating=5.0),
]


@pytest.fixture
def sample_frame() -> pd.DataFrame:
    """Raw results table as it would be read from disk."""
    return make_frame([dict(row) for row in SAMPLE_ROWS])


@pytest.fixture
def dataset(sample_frame: pd.DataFrame) -> Dataset:
    """Dataset over the raw table, without label preparation."""
    return Dataset(sample_frame)


@pytest.fixture
def prepared_dataset(sample_frame: pd.DataFrame) -> Dataset:
    """Dataset as ``load_dataset`` would produce it."""
    return Dataset(prepare_frame(sample_frame))


@pytest.fixture
def dataset_csv(tmp_path: Path, sample_frame: pd.DataFrame) -> Path:
    path = tmp_path / "merged_posterior.csv"
    sample_frame.to_csv(path, index=False)
    return path
