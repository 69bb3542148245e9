"""
Features Module — Shared Encoding Contract

Public API:
- FeatureEncoder: Profile/record -> fixed-order numeric vector
- NormalizationStats, FieldStats: Continuous-field statistics
- CODE_TABLES, FORM_TO_DATASET: Versioned vocabulary lookup
"""

from .encoder import (
    FeatureEncoder,
    FieldStats,
    NormalizationStats,
    CODE_TABLES,
    FORM_TO_DATASET,
    VOCABULARY_VERSION,
    FEATURE_NAMES,
    CLINICAL_FIELDS,
    CATEGORICAL_FIELDS,
    CONTINUOUS_FIELDS,
    LABEL_FIELD,
    encode_category,
    normalize,
    parse_float,
    profile_to_record,
    reverse_lookup,
    to_dataset_value,
)

__all__ = [
    "FeatureEncoder",
    "FieldStats",
    "NormalizationStats",
    "CODE_TABLES",
    "FORM_TO_DATASET",
    "VOCABULARY_VERSION",
    "FEATURE_NAMES",
    "CLINICAL_FIELDS",
    "CATEGORICAL_FIELDS",
    "CONTINUOUS_FIELDS",
    "LABEL_FIELD",
    "encode_category",
    "normalize",
    "parse_float",
    "profile_to_record",
    "reverse_lookup",
    "to_dataset_value",
]
