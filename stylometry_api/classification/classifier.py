"""Naive Bayes analyzer for author attribution."""

from typing import Dict, List, Tuple

import numpy as np
from scipy import sparse
from sklearn.naive_bayes import MultinomialNB

from stylometry_api.classification.analyzer import Analyzer


class NaiveBayesAnalyzer(Analyzer):
    """
    Multinomial Naive Bayes analyzer for author attribution.

    Each document's features are normalized to frequencies, scaled up by
    scale_factor and rounded to integers before fitting, so every document
    carries the same total count and Naive Bayes gets the integer count
    data it expects. Models P(event|author) for each author.

    Attributes:
        classifier: Fitted sklearn MultinomialNB
        classes_: Array of class labels (author names)
        n_classes_: Number of classes

    Examples:
        >>> analyzer = NaiveBayesAnalyzer()
        >>> analyzer.fit(X_train, y_train)
        >>> predictions = analyzer.predict(X_test)
        >>> weights = analyzer.get_feature_weights(feature_names)
    """

    def __init__(self, alpha: float = 1.0, scale_factor: int = 100000):
        """
        Args:
            alpha: Additive smoothing parameter (default: 1.0 for Laplace smoothing)
            scale_factor: Total count each document is scaled to
        """
        self.alpha = alpha
        self.scale_factor = scale_factor
        self.classifier = None
        self.classes_ = None
        self.n_classes_ = None

    def _scale(self, X) -> np.ndarray:
        if sparse.issparse(X):
            X = X.toarray()
        X = np.asarray(X, dtype=float)

        totals = X.sum(axis=1, keepdims=True)
        frequencies = np.divide(X, totals, out=np.zeros_like(X), where=totals > 0)
        return np.round(frequencies * self.scale_factor).astype(int)

    def fit(self, X, y) -> "NaiveBayesAnalyzer":
        self.classifier = MultinomialNB(alpha=self.alpha)
        self.classifier.fit(self._scale(X), y)
        self.classes_ = self.classifier.classes_
        self.n_classes_ = len(self.classes_)
        return self

    def predict_scores(self, X) -> Tuple[np.ndarray, np.ndarray]:
        if self.classifier is None:
            raise ValueError("Analyzer must be fitted before predicting")
        return self.classes_, self.classifier.predict_proba(self._scale(X))

    def get_classifier(self):
        return self.classifier

    def get_feature_weights(self, feature_names: List[str]) -> Dict[str, Dict[str, float]]:
        """
        Extract author-specific feature weights.

        Naive Bayes directly models P(event|author) for each author; higher
        probability means the event is more characteristic of that author.

        Args:
            feature_names: Attribute names, in feature matrix order

        Returns:
            Dictionary with keys:
            - author names: {feature: P(feature|author), ...} for each author
            - 'overall': {feature: avg_weight, ...} averaged across all authors

        Raises:
            ValueError: If the analyzer hasn't been fitted yet
        """
        if self.classes_ is None:
            raise ValueError("Analyzer must be fitted before extracting weights")

        # feature_log_prob_[i, j] = log P(feature_j | author_i)
        feature_probs = np.exp(self.classifier.feature_log_prob_)

        author_weights = {}
        for class_idx, author in enumerate(self.classes_):
            author_weights[author] = {
                feature_name: float(prob)
                for feature_name, prob in zip(feature_names, feature_probs[class_idx, :])
            }

        overall_weights = {
            feature_name: float(np.mean(feature_probs[:, feature_idx]))
            for feature_idx, feature_name in enumerate(feature_names)
        }

        return {**author_weights, 'overall': overall_weights}

    def __repr__(self):
        return f"NaiveBayesAnalyzer(alpha={self.alpha}, scale_factor={self.scale_factor})"
