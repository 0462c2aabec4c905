"""Loading of regression datasets from CSV files."""

from __future__ import annotations

import os

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from ..config import TRAIN_SIZE
from ..logging_config import get_logger
from ..types import ConfigurationError

logger = get_logger("data")


def load_dataset(
    filepath: str, target_column: str | None = None
) -> tuple[np.ndarray, np.ndarray, list[str]]:
    """Load a regression dataset from a CSV file with a header row.

    Rows with an empty cell are dropped with a warning.

    Args:
        filepath: Path to the CSV file
        target_column: Name of the target column (default: the last column)

    Returns:
        Tuple of (X, y, variable names). The variable names follow the column
        order of X, so ``variable_terminals(names)`` gives matching 1-based
        indices.

    Raises:
        ConfigurationError: If the file is missing or empty, has a single
            column, holds non-numeric cells or has no complete row
    """
    if not os.path.exists(filepath):
        raise ConfigurationError(f"File not found: {filepath}")

    try:
        df = pd.read_csv(filepath)
    except pd.errors.EmptyDataError as e:
        raise ConfigurationError(f"CSV file is empty: {filepath}") from e

    df.columns = [str(c).strip() for c in df.columns]
    if df.empty:
        raise ConfigurationError(f"CSV file has no data rows: {filepath}")
    if df.shape[1] < 2:
        raise ConfigurationError("The dataset needs at least one variable and a target column")

    if target_column is None:
        target_column = df.columns[-1]
    elif target_column not in df.columns:
        raise ConfigurationError(f"Target column '{target_column}' not found in {filepath}")

    numeric = df.apply(pd.to_numeric, errors="coerce")
    bad = numeric.isna() & df.notna()
    if bad.any().any():
        cols = ", ".join(df.columns[bad.any()].tolist())
        raise ConfigurationError(f"Non-numeric values in column(s): {cols}")

    missing = numeric.isna().any(axis=1)
    if missing.any():
        logger.warning(
            "Dropping %d row(s) with missing values from '%s'", int(missing.sum()), filepath
        )
        numeric = numeric[~missing]
        if numeric.empty:
            raise ConfigurationError(f"Every row of {filepath} has missing values")

    variable_names = [c for c in df.columns if c != target_column]
    X = numeric[variable_names].to_numpy(dtype=float)
    y = numeric[target_column].to_numpy(dtype=float)

    logger.info("Loaded %d rows and %d variables from '%s'", X.shape[0], X.shape[1], filepath)
    return X, y, variable_names


def train_test_split_xy(
    X: np.ndarray,
    y: np.ndarray,
    train_size: float = TRAIN_SIZE,
    seed: int | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Shuffle and split the data into train and test partitions.

    Returns:
        Tuple of (X_train, X_test, y_train, y_test)
    """
    if not 0.0 < train_size < 1.0:
        raise ConfigurationError(f"train_size must be in (0, 1), got {train_size}")
    return train_test_split(X, y, train_size=train_size, shuffle=True, random_state=seed)
