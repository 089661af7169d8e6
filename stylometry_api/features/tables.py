"""Helpers for feature tables (pandas DataFrames, one row per document)."""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import sparse

from stylometry_api.core.constants import CLASS_ATTRIBUTE, TITLE_ATTRIBUTE


def feature_columns(table: pd.DataFrame) -> List[str]:
    """Names of the numeric feature attributes, in table order."""
    return [c for c in table.columns if c not in (CLASS_ATTRIBUTE, TITLE_ATTRIBUTE)]


def is_sparse(table: pd.DataFrame) -> bool:
    return any(isinstance(table[c].dtype, pd.SparseDtype) for c in feature_columns(table))


def class_index(table: pd.DataFrame) -> int:
    """Position of the class attribute."""
    if CLASS_ATTRIBUTE not in table.columns:
        raise KeyError(f"Feature table has no '{CLASS_ATTRIBUTE}' column")
    return table.columns.get_loc(CLASS_ATTRIBUTE)


def class_labels(table: pd.DataFrame) -> np.ndarray:
    """Author label of each row (None where the label is missing)."""
    values = table[CLASS_ATTRIBUTE].astype(object)
    return np.array([None if pd.isna(v) else str(v) for v in values], dtype=object)


def split_features(table: pd.DataFrame) -> Tuple[Union[np.ndarray, sparse.csr_matrix], np.ndarray]:
    """
    Split a feature table into a feature matrix and label vector.

    Args:
        table: Feature table with a class column

    Returns:
        (X, y) where X is a CSR matrix for sparse tables and a dense float
        array otherwise
    """
    columns = feature_columns(table)
    if not columns:
        X = np.zeros((len(table), 0))
    elif is_sparse(table):
        X = sparse.csr_matrix(table[columns].sparse.to_coo())
    else:
        X = table[columns].to_numpy(dtype=float)
    return X, class_labels(table)


def set_class_column(table: pd.DataFrame, labels: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Move the class attribute to the final position.

    Args:
        table: Feature table
        labels: If given, the permitted author labels; rows labeled with any
            other author lose their label

    Returns:
        A new DataFrame with the class column last

    Raises:
        KeyError: If the table has no class column
    """
    class_index(table)
    columns = [c for c in table.columns if c != CLASS_ATTRIBUTE] + [CLASS_ATTRIBUTE]
    result = table[columns].copy()

    if labels is not None:
        result[CLASS_ATTRIBUTE] = pd.Categorical(
            result[CLASS_ATTRIBUTE].astype(object), categories=list(labels)
        )
    return result
