"""Cross-validation for authorship attribution experiments."""

from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold
from tqdm import tqdm


def generate_cv_splits(
    labels: Sequence[str],
    num_folds: int = 10,
    seed: int = 0
) -> List[Tuple[List[int], List[int]]]:
    """
    Generate stratified k-fold cross-validation splits.

    Every document is held out exactly once; each fold keeps author
    proportions as close to the full collection as possible.

    Args:
        labels: Author label of each document
        num_folds: Number of folds
        seed: Random seed for shuffling documents before splitting

    Returns:
        List of (train_indices, test_indices) tuples

    Raises:
        ValueError: If num_folds exceeds the number of documents per author

    Examples:
        >>> splits = generate_cv_splits(['a', 'a', 'b', 'b'], num_folds=2, seed=0)
        >>> train_idx, test_idx = splits[0]
    """
    labels = np.asarray(labels)
    splitter = StratifiedKFold(n_splits=num_folds, shuffle=True, random_state=seed)

    splits = []
    for train_idx, test_idx in splitter.split(np.zeros(len(labels)), labels):
        splits.append((train_idx.tolist(), test_idx.tolist()))
    return splits


def run_cross_validation(
    analyzer,
    X,
    y: np.ndarray,
    document_ids: Sequence[str],
    cv_splits: List[Tuple[List[int], List[int]]]
) -> pd.DataFrame:
    """
    Run cross-validation and return results in long format.

    For each CV split:
    1. Fit the analyzer on the training documents
    2. Predict the held-out documents
    3. Record 1.0 if the prediction is correct, 0.0 if not

    Args:
        analyzer: Analyzer to fit once per split
        X: Feature matrix (dense or sparse), one row per document
        y: Author labels
        document_ids: Identifier of each document
        cv_splits: List of (train_indices, test_indices) tuples

    Returns:
        DataFrame with columns:
        - fold: int
        - document: str
        - true_author: str
        - predicted_author: str
        - accuracy: float (1.0 if correct, 0.0 if incorrect)
    """
    results = []
    y = np.asarray(y)

    for fold, (train_idx, test_idx) in enumerate(tqdm(cv_splits, desc="CV folds")):
        analyzer.fit(X[train_idx], y[train_idx])
        y_pred = analyzer.predict(X[test_idx])

        for i, test_i in enumerate(test_idx):
            true_author = y[test_i]
            predicted_author = y_pred[i]
            results.append({
                'fold': fold,
                'document': document_ids[test_i],
                'true_author': true_author,
                'predicted_author': predicted_author,
                'accuracy': 1.0 if predicted_author == true_author else 0.0,
            })

    return pd.DataFrame(
        results, columns=['fold', 'document', 'true_author', 'predicted_author', 'accuracy']
    )
