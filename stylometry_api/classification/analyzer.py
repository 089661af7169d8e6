"""Analyzers: the classifier capabilities an experiment relies on."""

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from scipy.special import softmax
from sklearn.base import clone

from stylometry_api.classification.cross_validation import generate_cv_splits, run_cross_validation
from stylometry_api.classification.evaluation import EvaluationResult
from stylometry_api.features.tables import split_features

# document id -> author -> score
PredictionMap = Dict[str, Dict[str, float]]


class Analyzer(ABC):
    """
    Base class for everything that can attribute documents to authors.

    Subclasses implement fit() and predict_scores(); the three evaluation
    protocols used by experiments are built on top of them.
    """

    @abstractmethod
    def fit(self, X, y) -> "Analyzer":
        """Train on feature matrix X and author labels y."""

    @abstractmethod
    def predict_scores(self, X) -> Tuple[np.ndarray, np.ndarray]:
        """
        Score every row of X against every author.

        Returns:
            (classes, scores) where scores has shape (n_samples, n_classes)
        """

    def predict(self, X) -> np.ndarray:
        classes, scores = self.predict_scores(X)
        return np.asarray(classes)[np.argmax(scores, axis=1)]

    def get_classifier(self):
        """The underlying classifier object, if there is one."""
        return None

    def run_cross_validation(self, table: pd.DataFrame, num_folds: int, seed: int) -> EvaluationResult:
        X, y = split_features(table)
        document_ids = [str(i) for i in table.index]
        splits = generate_cv_splits(y, num_folds=num_folds, seed=seed)
        results = run_cross_validation(self, X, y, document_ids, splits)
        return EvaluationResult(results, labels=sorted(set(y)))

    def classify(
        self,
        train_table: pd.DataFrame,
        test_table: pd.DataFrame,
        document_ids: Sequence[str]
    ) -> PredictionMap:
        """
        Train on one table and score every document of another.

        Returns:
            Mapping from document id to a mapping from author to score
        """
        X_train, y_train = split_features(train_table)
        X_test, _ = split_features(test_table)
        if len(document_ids) != X_test.shape[0]:
            raise ValueError(
                f"Got {len(document_ids)} document ids for {X_test.shape[0]} test rows"
            )

        self.fit(X_train, y_train)
        classes, scores = self.predict_scores(X_test)
        return {
            str(doc_id): {str(c): float(s) for c, s in zip(classes, row)}
            for doc_id, row in zip(document_ids, scores)
        }

    def get_train_test_eval(self, train_table: pd.DataFrame, test_table: pd.DataFrame) -> EvaluationResult:
        """
        Train on one table and evaluate on test documents with known authors.

        Raises:
            ValueError: If a test document's author has no training documents
        """
        X_train, y_train = split_features(train_table)
        X_test, y_test = split_features(test_table)

        labels = sorted(set(y_train))
        unknown = sorted({str(a) for a in y_test if a not in labels})
        if unknown:
            raise ValueError(f"Test documents labeled with authors absent from training: {unknown}")

        self.fit(X_train, y_train)
        y_pred = self.predict(X_test)
        predictions = pd.DataFrame({
            'document': [str(i) for i in test_table.index],
            'true_author': y_test,
            'predicted_author': y_pred,
        })
        return EvaluationResult(predictions, labels=labels)


class SklearnAnalyzer(Analyzer):
    """
    Wraps a scikit-learn classifier.

    The estimator is cloned on every fit, so the same analyzer can be reused
    across cross-validation folds.

    Args:
        estimator: Unfitted scikit-learn classifier
        dense: Convert sparse feature matrices to dense arrays first
    """

    def __init__(self, estimator, dense: bool = False):
        self.estimator = estimator
        self.dense = dense
        self.fitted_ = None

    def _prepare(self, X):
        if self.dense and sparse.issparse(X):
            return X.toarray()
        return X

    def fit(self, X, y) -> "SklearnAnalyzer":
        self.fitted_ = clone(self.estimator).fit(self._prepare(X), y)
        return self

    def predict_scores(self, X) -> Tuple[np.ndarray, np.ndarray]:
        if self.fitted_ is None:
            raise ValueError("Analyzer must be fitted before predicting")

        clf = self.fitted_
        X = self._prepare(X)
        classes = np.asarray(clf.classes_)

        if hasattr(clf, 'predict_proba'):
            scores = clf.predict_proba(X)
        elif hasattr(clf, 'decision_function'):
            decision = np.asarray(clf.decision_function(X))
            if decision.ndim == 1:
                # Binary: positive values favour classes[1]
                decision = np.column_stack([-decision, decision])
            scores = softmax(decision, axis=1)
        else:
            predicted = np.asarray(clf.predict(X))
            scores = (predicted[:, None] == classes[None, :]).astype(float)

        return classes, np.asarray(scores)

    def get_classifier(self):
        return self.fitted_ if self.fitted_ is not None else self.estimator

    def __repr__(self):
        return f"SklearnAnalyzer({self.estimator!r})"
