"""Human-readable reports over experiment results."""

from typing import Optional

import numpy as np
import pandas as pd

from stylometry_api.classification.evaluation import EvaluationResult
from stylometry_api.errors import ReportingError


def readable_info_gain(
    info_gain: Optional[np.ndarray],
    table: Optional[pd.DataFrame],
    show_zeroes: bool = False
) -> str:
    """
    List attributes from most to least useful with their info gain.

    Args:
        info_gain: (gain, column index) pairs sorted by descending gain
        table: Feature table the column indices refer to
        show_zeroes: Also list attributes whose gain is zero

    Raises:
        ReportingError: If info gain or the table is unavailable
    """
    if info_gain is None:
        raise ReportingError("Info gain has not been calculated")
    if table is None:
        raise ReportingError("No training table to name the attributes")

    info_string = ">-----InfoGain information: \n\n"
    for gain, index in info_gain:
        # Sorted descending, so the first zero ends the useful attributes
        if not show_zeroes and gain == 0:
            break
        info_string += f"> {table.columns[int(index)]:<50}   {gain:f}\n"
    return info_string


def _require(evaluation: Optional[EvaluationResult]) -> EvaluationResult:
    if evaluation is None:
        raise ReportingError("No evaluation result; run a cross-validation or known train/test experiment first")
    return evaluation


def stat_string(evaluation: Optional[EvaluationResult]) -> str:
    """Summary, per-author details and confusion matrix."""
    evaluation = _require(evaluation)
    return (evaluation.summary_string() + "\n"
            + evaluation.class_details_string() + "\n"
            + evaluation.matrix_string() + "\n")


def classification_accuracy(evaluation: Optional[EvaluationResult]) -> str:
    """Weighted true positive rate as a percentage with four decimals, e.g. '80.0000'."""
    evaluation = _require(evaluation)
    return f"{evaluation.weighted_true_positive_rate * 100:.4f}"
