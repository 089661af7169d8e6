"""Analyzers, cross-validation and evaluation for author attribution."""

from .evaluation import EvaluationResult
from .cross_validation import generate_cv_splits, run_cross_validation
from .analyzer import Analyzer, SklearnAnalyzer, PredictionMap
from .classifier import NaiveBayesAnalyzer
from .registry import (
    register_classifier,
    register_analyzer,
    resolve_analyzer,
    available_classifiers,
)

__all__ = [
    'EvaluationResult',
    'generate_cv_splits',
    'run_cross_validation',
    'Analyzer',
    'SklearnAnalyzer',
    'PredictionMap',
    'NaiveBayesAnalyzer',
    'register_classifier',
    'register_analyzer',
    'resolve_analyzer',
    'available_classifiers',
]
