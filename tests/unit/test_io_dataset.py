"""Unit tests for loading, validating and querying the results table."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from msa.core.models import ColorFactor, Framework
from msa.io.dataset import (
    Dataset,
    DatasetNotFoundError,
    DatasetSchemaError,
    load_dataset,
    prepare_frame,
)
from msa.io.validation import DatasetValidator, validate_dataset_file
from msa.views.derive import forest_view


class TestLoadDataset:
    """Tests for reading the table from disk."""

    def test_load_csv(self, dataset_csv: Path) -> None:
        """Test a valid CSV loads with one row per model."""
        dataset = load_dataset(dataset_csv)
        assert len(dataset) == 6
        assert "color_var" not in dataset.columns
        assert set(dataset.column("model_id").astype(str)) == {"A01", "A02", "A03", "A04", "A05", "A06"}

    def test_load_parquet(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        """Test parquet input is supported."""
        path = tmp_path / "merged.parquet"
        sample_frame.to_parquet(path, index=False)
        dataset = load_dataset(path)
        assert len(dataset) == 6

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is fatal."""
        with pytest.raises(DatasetNotFoundError):
            load_dataset(tmp_path / "nope.parquet")

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "merged.rds"
        path.write_bytes(b"\x00\x01")
        with pytest.raises(DatasetSchemaError, match="Unsupported"):
            load_dataset(path)

    def test_missing_column(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        """Test a schema mismatch is fatal."""
        path = tmp_path / "merged.csv"
        sample_frame.drop(columns=["typicality"]).to_csv(path, index=False)
        with pytest.raises(DatasetSchemaError, match="typicality"):
            load_dataset(path)

    def test_all_missing_framework_loads(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        """Test a table with no framework values loads and filters to nothing."""
        frame = sample_frame.copy()
        frame["framework"] = None
        path = tmp_path / "merged.csv"
        frame.to_csv(path, index=False)
        dataset = load_dataset(path)
        assert dataset.column("framework").isna().all()
        for framework in (Framework.FREQUENTIST, Framework.BAYESIAN):
            rows = forest_view(dataset, framework, ColorFactor.OUTCOME, ["F0"])
            assert rows.empty
        assert len(forest_view(dataset, Framework.ANY, ColorFactor.OUTCOME, ["F0"])) == 3

    def test_duplicate_model_ids(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        frame = sample_frame.copy()
        frame.loc[1, "model_id"] = "A01"
        path = tmp_path / "merged.csv"
        frame.to_csv(path, index=False)
        with pytest.raises(DatasetSchemaError, match="Duplicate model_id"):
            load_dataset(path)

    def test_non_numeric_estimates(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        frame = sample_frame.copy()
        frame["post_mean"] = frame["post_mean"].astype(object)
        frame.loc[0, "post_mean"] = "large"
        path = tmp_path / "merged.csv"
        frame.to_csv(path, index=False)
        with pytest.raises(DatasetSchemaError, match="post_mean"):
            load_dataset(path)

    def test_unknown_framework(self, tmp_path: Path, sample_frame: pd.DataFrame) -> None:
        frame = sample_frame.copy()
        frame.loc[0, "framework"] = "fiducial"
        path = tmp_path / "merged.csv"
        frame.to_csv(path, index=False)
        with pytest.raises(DatasetSchemaError, match="fiducial"):
            load_dataset(path)


class TestPrepareFrame:
    """Tests for load-time relevelling and label casing."""

    def test_model_id_ordered_by_posterior_mean(self, sample_frame: pd.DataFrame) -> None:
        prepared = prepare_frame(sample_frame)
        ids = prepared["model_id"]
        assert ids.cat.ordered
        assert list(ids.cat.categories) == ["A02", "A04", "A01", "A05", "A06", "A03"]

    def test_source_row_order_kept(self, sample_frame: pd.DataFrame) -> None:
        prepared = prepare_frame(sample_frame)
        assert list(prepared["model_id"].astype(str)) == ["A01", "A02", "A03", "A04", "A05", "A06"]

    def test_label_casing(self, sample_frame: pd.DataFrame) -> None:
        prepared = prepare_frame(sample_frame)
        assert prepared.loc[0, "outcome"] == "F0"
        assert prepared.loc[1, "outcome"] == "Duration"
        assert prepared.loc[0, "typicality"] == "Typical"
        assert prepared.loc[0, "found_effect"] == "Yes"
        assert prepared.loc[1, "temporal_window"] == "Sentence"

    def test_compelling_relabelled(self, sample_frame: pd.DataFrame) -> None:
        prepared = prepare_frame(sample_frame)
        assert prepared.loc[0, "compelling"] == "Compelling"
        assert prepared.loc[1, "compelling"] == "Not compelling"

    def test_missing_values_stay_missing(self, sample_frame: pd.DataFrame) -> None:
        prepared = prepare_frame(sample_frame)
        assert pd.isna(prepared.loc[3, "outcome"])
        assert pd.isna(prepared.loc[3, "compelling"])
        assert pd.isna(prepared.loc[4, "found_effect"])
        assert np.isnan(prepared.loc[4, "years_from_phd"])

    def test_input_not_modified(self, sample_frame: pd.DataFrame) -> None:
        before = sample_frame.copy()
        prepare_frame(sample_frame)
        pd.testing.assert_frame_equal(sample_frame, before)


class TestDatasetStore:
    """Tests for the read-only projection and filter API."""

    def test_project_renames_in_order(self, dataset: Dataset) -> None:
        rows = dataset.project({"y": "post_mean", "x": "years_from_phd"})
        assert list(rows.columns) == ["y", "x"]
        assert rows["y"].tolist() == [0.10, -0.05, 0.30, 0.00, 0.15, 0.22]

    def test_project_returns_copy(self, dataset: Dataset) -> None:
        rows = dataset.project({"post_mean": "post_mean"})
        rows.loc[0, "post_mean"] = 99.0
        assert dataset.column("post_mean").iloc[0] == 0.10

    def test_project_unknown_column(self, dataset: Dataset) -> None:
        with pytest.raises(KeyError):
            dataset.project({"x": "not_a_column"})

    def test_filter_returns_new_dataset(self, dataset: Dataset) -> None:
        bayesian = dataset.filter(lambda df: df["framework"] == "bayesian")
        assert isinstance(bayesian, Dataset)
        assert len(bayesian) == 3
        assert len(dataset) == 6
        assert bayesian.column("model_id").tolist() == ["A02", "A04", "A06"]

    def test_filter_predicate_cannot_mutate(self, dataset: Dataset) -> None:
        def sneaky(df: pd.DataFrame) -> pd.Series:
            df["post_mean"] = 0.0
            return df["framework"] == "frequentist"

        dataset.filter(sneaky)
        assert dataset.column("post_mean").iloc[0] == 0.10

    def test_not_iterable(self, dataset: Dataset) -> None:
        with pytest.raises(TypeError):
            iter(dataset)

    def test_constructor_copies_frame(self, sample_frame: pd.DataFrame) -> None:
        dataset = Dataset(sample_frame)
        sample_frame.loc[0, "post_mean"] = 5.0
        assert dataset.column("post_mean").iloc[0] == 0.10


class TestValidation:
    """Tests for the schema validator."""

    def test_valid_frame(self, sample_frame: pd.DataFrame) -> None:
        validator = DatasetValidator(verbose=False)
        assert validator.validate(sample_frame)
        assert validator.errors == []

    def test_all_missing_column_warns(self, sample_frame: pd.DataFrame) -> None:
        frame = sample_frame.copy()
        frame["compelling"] = None
        validator = DatasetValidator(verbose=False)
        assert validator.validate(frame)
        assert any("compelling" in w for w in validator.warnings)

    def test_strict_fails_on_warnings(self, sample_frame: pd.DataFrame) -> None:
        frame = sample_frame.copy()
        frame["compelling"] = None
        assert not DatasetValidator(strict=True, verbose=False).validate(frame)

    def test_validate_file_missing(self, tmp_path: Path) -> None:
        assert validate_dataset_file(tmp_path / "missing.csv") is False

    def test_validate_file_ok(self, dataset_csv: Path) -> None:
        assert validate_dataset_file(dataset_csv) is True
