"""
stylometry_api

Run authorship attribution experiments: cross-validation, attribution of
documents of unknown authorship, and train/test evaluation with known authors.
"""

__version__ = "1.0.0"

from .api import (
    AnalysisMode,
    Builder,
    CrossValidated,
    EvaluationOutcome,
    ExperimentConfig,
    FromName,
    FromPath,
    FromValue,
    Predicted,
    PreparationReport,
    StylometryAPI,
    TrainTestKnown,
)
from .classification import (
    Analyzer,
    EvaluationResult,
    NaiveBayesAnalyzer,
    SklearnAnalyzer,
    available_classifiers,
    register_analyzer,
    register_classifier,
)
from .documents import Document, ProblemSet
from .errors import (
    ConfigurationError,
    EvaluationFailure,
    NotPreparedError,
    ReportingError,
    ResolutionFailure,
    StageFailure,
    StylometryError,
)
from .features import EventDriver, FeatureDriver, FeatureEngine, read_arff, write_arff

__all__ = [
    'AnalysisMode',
    'Builder',
    'CrossValidated',
    'EvaluationOutcome',
    'ExperimentConfig',
    'FromName',
    'FromPath',
    'FromValue',
    'Predicted',
    'PreparationReport',
    'StylometryAPI',
    'TrainTestKnown',
    'Analyzer',
    'EvaluationResult',
    'NaiveBayesAnalyzer',
    'SklearnAnalyzer',
    'available_classifiers',
    'register_analyzer',
    'register_classifier',
    'Document',
    'ProblemSet',
    'ConfigurationError',
    'EvaluationFailure',
    'NotPreparedError',
    'ReportingError',
    'ResolutionFailure',
    'StageFailure',
    'StylometryError',
    'EventDriver',
    'FeatureDriver',
    'FeatureEngine',
    'read_arff',
    'write_arff',
]
