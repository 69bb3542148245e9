"""
Dataset Processor — Labeled Records to Training Matrices

Turns raw CSV rows into (features, labels) plus normalization statistics.

Constraints:
- Two passes over the SAME validity filter:
  pass 1 collects statistics, pass 2 normalizes + encodes
- Valid row: Age and BMI parse and are > 0; every categorical field and the
  Diabetes label are non-empty
- Invalid rows are dropped silently and only counted
- Population std (ddof=0); clinical fields with no values get mean=0, std=1
- Encoding goes through FeatureEncoder, never a private copy of the tables
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from diabetes_risk.features.encoder import (
    CATEGORICAL_FIELDS,
    CLINICAL_FIELDS,
    CONTINUOUS_FIELDS,
    LABEL_FIELD,
    FeatureEncoder,
    FieldStats,
    NormalizationStats,
    encode_category,
    parse_float,
)


logger = logging.getLogger(__name__)


class DatasetError(Exception):
    """Raised when a dataset cannot produce any training data."""
    pass


@dataclass
class ProcessedDataset:
    """Output of DatasetProcessor.fit()."""
    features: np.ndarray
    labels: np.ndarray
    stats: NormalizationStats
    feature_names: List[str]
    total_rows: int
    valid_rows: int
    invalid_rows: int
    diabetes_rate: float
    include_clinical: bool = False


def load_dataset(path) -> List[Dict[str, str]]:
    """
    Read a CSV dataset into raw string records.

    Cells are kept as strings (blanks as ""), parsing is the processor's job.

    Raises:
        DatasetError: If the file does not exist
    """
    import pandas as pd

    csv_path = Path(path)
    if not csv_path.exists():
        raise DatasetError(f"Dataset not found: {csv_path}")

    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False, skipinitialspace=True)
    records = frame.to_dict("records")
    logger.info(f"[Dataset] Loaded {len(records)} records from {csv_path.name}")
    return records


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    return str(value).strip() != ""


def is_valid_row(row: Mapping[str, Any]) -> bool:
    """Validity filter shared by both passes."""
    for name in CONTINUOUS_FIELDS:
        value = parse_float(row.get(name))
        if value is None or value <= 0:
            return False
    for name in CATEGORICAL_FIELDS + [LABEL_FIELD]:
        if not _is_present(row.get(name)):
            return False
    return True


def _field_stats(values: List[float]) -> FieldStats:
    if not values:
        return FieldStats(mean=0.0, std=1.0, sample_count=0)
    arr = np.asarray(values, dtype=float)
    return FieldStats(mean=float(arr.mean()), std=float(arr.std()), sample_count=len(values))


class DatasetProcessor:
    """
    Converts labeled rows into normalized, encoded training data.

    Stateless: every call to fit() is independent.
    """

    def __init__(self, include_clinical: Optional[bool] = None):
        """
        Args:
            include_clinical: Force the 15-wide layout on/off.
                              None = on when the rows carry any clinical column.
        """
        self.include_clinical = include_clinical

    def _detect_clinical(self, rows: Sequence[Mapping[str, Any]]) -> bool:
        if self.include_clinical is not None:
            return self.include_clinical
        return any(name in rows[0] for name in CLINICAL_FIELDS)

    def compute_stats(
        self,
        rows: Sequence[Mapping[str, Any]],
        include_clinical: bool
    ) -> NormalizationStats:
        """Pass 1: accumulate continuous-field statistics over valid rows."""
        names = CONTINUOUS_FIELDS + (CLINICAL_FIELDS if include_clinical else [])
        collected: Dict[str, List[float]] = {name: [] for name in names}

        for row in rows:
            if not is_valid_row(row):
                continue
            for name in names:
                value = parse_float(row.get(name))
                if value is not None:
                    collected[name].append(value)

        return NormalizationStats(
            fields={name: _field_stats(values) for name, values in collected.items()}
        )

    def fit(self, rows: Sequence[Mapping[str, Any]]) -> ProcessedDataset:
        """
        Build training matrices from raw rows.

        Args:
            rows: Raw records keyed by dataset column names

        Returns:
            ProcessedDataset with features, labels, stats and row counts

        Raises:
            DatasetError: If no rows are given or none pass the filter
        """
        if len(rows) == 0:
            raise DatasetError("No data loaded")

        include_clinical = self._detect_clinical(rows)

        # Pass 1: statistics
        stats = self.compute_stats(rows, include_clinical)

        # Pass 2: normalize + encode
        encoder = FeatureEncoder(stats=stats, include_clinical=include_clinical)
        features: List[List[float]] = []
        labels: List[float] = []

        for row in rows:
            if not is_valid_row(row):
                continue
            features.append(encoder.encode_record(row))
            labels.append(encode_category(LABEL_FIELD, row.get(LABEL_FIELD)))

        valid_rows = len(features)
        invalid_rows = len(rows) - valid_rows

        if valid_rows == 0:
            raise DatasetError(f"None of the {len(rows)} rows passed validation")

        age, bmi = stats.get("Age"), stats.get("BMI")
        logger.info(f"[Dataset] Processed {valid_rows} valid records out of {len(rows)} ({invalid_rows} dropped)")
        logger.info(f"[Dataset] Age mean: {age.mean:.2f}, std: {age.std:.2f}")
        logger.info(f"[Dataset] BMI mean: {bmi.mean:.2f}, std: {bmi.std:.2f}")

        label_array = np.asarray(labels, dtype=float)

        return ProcessedDataset(
            features=np.asarray(features, dtype=float),
            labels=label_array,
            stats=stats,
            feature_names=encoder.feature_names,
            total_rows=len(rows),
            valid_rows=valid_rows,
            invalid_rows=invalid_rows,
            diabetes_rate=float(label_array.mean()),
            include_clinical=include_clinical,
        )
