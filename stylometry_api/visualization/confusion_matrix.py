"""Confusion matrix heatmap for an evaluation result."""

from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import seaborn as sns

from stylometry_api.classification.evaluation import EvaluationResult


def generate_confusion_matrix_figure(
    evaluation: EvaluationResult,
    output_path=None,
    figsize: tuple = (6, 4),
    normalize: bool = True
):
    """
    Plot true authors against predicted authors.

    Args:
        evaluation: Result of a cross-validation or known train/test run
        output_path: Path to save PDF (optional)
        figsize: Figure size
        normalize: Show the fraction of each true author's documents rather
            than raw counts

    Returns:
        matplotlib figure object
    """
    cm = evaluation.confusion_matrix
    if normalize:
        cm = cm.div(cm.sum(axis=1).replace(0, 1), axis=0)

    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(
        cm,
        annot=True,
        fmt=".2f" if normalize else "d",
        cmap="Blues",
        cbar=False,
        ax=ax,
    )
    ax.set_xlabel("Predicted author")
    ax.set_ylabel("True author")
    plt.xticks(rotation=45)
    plt.yticks(rotation=0)
    plt.tight_layout()

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, format="pdf", bbox_inches="tight")

    return fig
