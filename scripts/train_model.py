"""
Model Training Script — Train & Evaluate from a CSV Dataset

Runs the same one-shot training the API performs at startup and reports
row counts, normalization statistics and holdout accuracy. Nothing is saved:
models live in process memory only.

Usage:
    python -m scripts.train_model --dataset synthetic_diabetes_dataset.csv
    python -m scripts.train_model --dataset data.csv --iterations 5000 --lr 0.05

The script can also be imported and called programmatically:
    from scripts.train_model import train_from_csv
    context = train_from_csv("synthetic_diabetes_dataset.csv")
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from diabetes_risk.ml.dataset import load_dataset
from diabetes_risk.ml.training import (
    DEFAULT_TRAIN_SPLIT,
    SERVING_ITERATIONS,
    ServingContext,
    build_serving_context,
)


def train_from_csv(
    dataset_path: str,
    learning_rate: float = 0.01,
    iterations: int = SERVING_ITERATIONS,
    train_split: float = DEFAULT_TRAIN_SPLIT,
) -> ServingContext:
    """
    Full training pipeline:
    1. Load the CSV
    2. Filter, normalize and encode (two passes)
    3. Train on the leading split, score the holdout

    Returns the serving context.
    """
    rows = load_dataset(dataset_path)
    print(f"[Train] Loaded {len(rows)} rows from {dataset_path}")

    context = build_serving_context(
        rows,
        learning_rate=learning_rate,
        iterations=iterations,
        train_split=train_split,
    )

    print(f"[Train] {context.valid_rows} valid rows, {context.invalid_rows} dropped")
    for name, field_stats in context.stats.fields.items():
        print(f"[Train] {name}: mean={field_stats.mean:.2f} std={field_stats.std:.2f} "
              f"(n={field_stats.sample_count})")

    return context


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Train the diabetes risk classifier")
    parser.add_argument("--dataset", default="synthetic_diabetes_dataset.csv", help="CSV dataset path")
    parser.add_argument("--lr", type=float, default=0.01, help="Learning rate")
    parser.add_argument("--iterations", type=int, default=SERVING_ITERATIONS, help="Gradient descent steps")
    parser.add_argument("--split", type=float, default=DEFAULT_TRAIN_SPLIT, help="Training fraction")

    args = parser.parse_args()

    try:
        context = train_from_csv(
            args.dataset,
            learning_rate=args.lr,
            iterations=args.iterations,
            train_split=args.split,
        )
        accuracy = "unknown" if context.accuracy is None else f"{context.accuracy:.2f}%"
        print("\n✅ Training complete.")
        print(f"   Features: {context.model.feature_count}")
        print(f"   Diabetes rate: {context.diabetes_rate:.1%}")
        print(f"   Holdout accuracy: {accuracy}")
    except Exception as e:
        print(f"\n❌ Training failed: {e}")
        sys.exit(1)
