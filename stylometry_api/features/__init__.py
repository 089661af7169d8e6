"""Feature drivers, extraction engine and feature table utilities."""

from .driver import EventDriver, FeatureDriver
from .engine import FeatureEngine
from .arff import write_arff, read_arff
from .tables import feature_columns, split_features, set_class_column

__all__ = [
    'EventDriver',
    'FeatureDriver',
    'FeatureEngine',
    'write_arff',
    'read_arff',
    'feature_columns',
    'split_features',
    'set_class_column',
]
