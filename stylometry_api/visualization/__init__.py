"""Visualization modules for stylometry_api."""

from .confusion_matrix import generate_confusion_matrix_figure

__all__ = [
    'generate_confusion_matrix_figure',
]
