"""Evaluation results for authorship attribution experiments."""

from typing import List, Sequence

import pandas as pd
from sklearn.metrics import classification_report, confusion_matrix, recall_score

REQUIRED_COLUMNS = ['document', 'true_author', 'predicted_author']


def _matrix_code(index: int) -> str:
    # a, b, ..., z, ba, bb, ... as in Weka confusion matrices
    code = ""
    while True:
        code = chr(ord('a') + index % 26) + code
        index //= 26
        if index == 0:
            return code


class EvaluationResult:
    """
    Predictions for documents with known authors, plus derived statistics.

    Attributes:
        predictions: Long-format DataFrame with one row per evaluated document
            (columns: document, true_author, predicted_author, accuracy and,
            for cross-validation, fold)
        labels: Ordered author labels; rows and columns of the confusion matrix

    Examples:
        >>> result = EvaluationResult(predictions_df, labels=['austen', 'dickens'])
        >>> result.accuracy
        0.8333
        >>> print(result.matrix_string())
    """

    def __init__(self, predictions: pd.DataFrame, labels: Sequence[str]):
        missing = [c for c in REQUIRED_COLUMNS if c not in predictions.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        self.predictions = predictions.reset_index(drop=True)
        self.labels: List[str] = list(labels)
        if 'accuracy' not in self.predictions.columns:
            self.predictions['accuracy'] = (
                self.predictions['true_author'] == self.predictions['predicted_author']
            ).astype(float)

    @property
    def y_true(self) -> List[str]:
        return self.predictions['true_author'].astype(str).tolist()

    @property
    def y_pred(self) -> List[str]:
        return self.predictions['predicted_author'].astype(str).tolist()

    @property
    def num_instances(self) -> int:
        return len(self.predictions)

    @property
    def num_correct(self) -> int:
        return int(self.predictions['accuracy'].sum())

    @property
    def accuracy(self) -> float:
        if self.num_instances == 0:
            return 0.0
        return self.num_correct / self.num_instances

    @property
    def weighted_true_positive_rate(self) -> float:
        """Per-author recall weighted by the number of documents per author."""
        if self.num_instances == 0:
            return 0.0
        return float(recall_score(
            self.y_true, self.y_pred, labels=self.labels, average='weighted', zero_division=0
        ))

    @property
    def confusion_matrix(self) -> pd.DataFrame:
        """Counts with true authors as rows and predicted authors as columns."""
        matrix = confusion_matrix(self.y_true, self.y_pred, labels=self.labels)
        return pd.DataFrame(
            matrix,
            index=pd.Index(self.labels, name='true_author'),
            columns=pd.Index(self.labels, name='predicted_author'),
        )

    def summary_string(self) -> str:
        total = self.num_instances
        correct = self.num_correct
        incorrect = total - correct

        def pct(n):
            return 100.0 * n / total if total else 0.0

        lines = [
            "=== Summary ===",
            "",
            f"{'Correctly Classified Instances':<40}{correct:>8}{pct(correct):>16.4f} %",
            f"{'Incorrectly Classified Instances':<40}{incorrect:>8}{pct(incorrect):>16.4f} %",
            f"{'Weighted True Positive Rate':<40}{self.weighted_true_positive_rate:>8.4f}",
            f"{'Total Number of Instances':<40}{total:>8}",
        ]
        return "\n".join(lines) + "\n"

    def class_details_string(self) -> str:
        report = classification_report(
            self.y_true, self.y_pred, labels=self.labels, zero_division=0, digits=4
        )
        return "=== Detailed Accuracy By Class ===\n\n" + report

    def matrix_string(self) -> str:
        matrix = self.confusion_matrix.to_numpy()
        codes = [_matrix_code(i) for i in range(len(self.labels))]
        width = max([len(c) for c in codes] + [len(str(matrix.max())) if matrix.size else 1])

        lines = ["=== Confusion Matrix ===", ""]
        lines.append(" ".join(f"{c:>{width}}" for c in codes) + "   <-- classified as")
        for code, label, row in zip(codes, self.labels, matrix):
            cells = " ".join(f"{v:>{width}}" for v in row)
            lines.append(f"{cells} | {code} = {label}")
        return "\n".join(lines) + "\n"

    def to_dataframe(self) -> pd.DataFrame:
        return self.predictions.copy()

    def __repr__(self):
        return (f"EvaluationResult(instances={self.num_instances}, "
                f"accuracy={self.accuracy:.4f}, labels={self.labels})")
