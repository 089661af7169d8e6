"""
High-level API for running authorship attribution experiments.

Build an experiment, prepare its feature tables, make sure it has an
analyzer, then run it and read the results:

    >>> api = (StylometryAPI.builder()
    ...        .problem_set_path("problem_sets/enron.yaml")
    ...        .feature_driver_path("feature_sets/writeprints_limited.yaml")
    ...        .classifier_name("svm")
    ...        .num_threads(8)
    ...        .analysis_mode(AnalysisMode.CROSS_VALIDATION)
    ...        .build())
    >>> api.prepare_instances()
    >>> api.prepare_analyzer()
    >>> api.run()
    >>> print(api.get_classification_accuracy())
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union
import logging

import numpy as np
import pandas as pd
import yaml
from sklearn.base import is_classifier

from stylometry_api.classification.analyzer import Analyzer, PredictionMap, SklearnAnalyzer
from stylometry_api.classification.evaluation import EvaluationResult
from stylometry_api.classification.registry import resolve_analyzer
from stylometry_api.core.constants import (
    CLASS_ATTRIBUTE,
    CROSS_VALIDATION_SEED,
    DEFAULT_NUM_FOLDS,
    DEFAULT_NUM_THREADS,
    PREPARATION_STAGES,
    UNKNOWN_AUTHOR,
)
from stylometry_api.documents.problem_set import ProblemSet
from stylometry_api.errors import (
    ConfigurationError,
    EvaluationFailure,
    NotPreparedError,
    ReportingError,
    ResolutionFailure,
    StageFailure,
)
from stylometry_api.features.arff import read_arff, write_arff
from stylometry_api.features.driver import FeatureDriver
from stylometry_api.features.engine import FeatureEngine
from stylometry_api.features.tables import class_labels, set_class_column
from stylometry_api import reporting

logger = logging.getLogger(__name__)


class AnalysisMode(Enum):
    """Which evaluation an experiment performs."""

    CROSS_VALIDATION = "cross_validation"
    TRAIN_TEST_UNKNOWN = "train_test_unknown"
    TRAIN_TEST_KNOWN = "train_test_known"

    @classmethod
    def parse(cls, value) -> "AnalysisMode":
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for mode in cls:
            if text.lower() == mode.value or text.upper() == mode.name:
                return mode
        raise ValueError(f"Invalid analysis mode: {value}. Must be one of {[m.value for m in cls]}")


# Alternative sources for the required settings

@dataclass(frozen=True)
class FromValue:
    value: Any


@dataclass(frozen=True)
class FromPath:
    path: str


@dataclass(frozen=True)
class FromName:
    name: str


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Settings of one experiment, fixed when the Builder builds it.

    ``problem_set`` or ``feature_driver`` is None only when loading it from
    a path failed; exactly one of ``analyzer`` and ``classifier_name`` is set.
    """

    problem_set: Optional[ProblemSet]
    feature_driver: Optional[FeatureDriver]
    analyzer: Optional[Analyzer] = None
    classifier_name: Optional[str] = None
    num_threads: int = DEFAULT_NUM_THREADS
    num_folds: int = DEFAULT_NUM_FOLDS
    analysis_mode: AnalysisMode = AnalysisMode.CROSS_VALIDATION
    use_doc_titles: bool = False
    use_sparse: bool = True
    load_doc_contents: bool = False


# Outcomes of run()

@dataclass(frozen=True)
class CrossValidated:
    evaluation: EvaluationResult


@dataclass(frozen=True)
class Predicted:
    predictions: PredictionMap


@dataclass(frozen=True)
class TrainTestKnown:
    evaluation: EvaluationResult


EvaluationOutcome = Union[CrossValidated, Predicted, TrainTestKnown]


@dataclass
class PreparationReport:
    """Which preparation stages completed, and the failure that stopped the rest."""

    completed: List[str] = field(default_factory=list)
    failure: Optional[StageFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def failed_stage(self) -> Optional[str]:
        return self.failure.stage if self.failure is not None else None


def _wrap_classifier(classifier) -> Analyzer:
    if isinstance(classifier, Analyzer):
        return classifier
    if is_classifier(classifier):
        return SklearnAnalyzer(classifier)
    raise ConfigurationError(
        f"{type(classifier).__name__} is neither an Analyzer nor a scikit-learn classifier"
    )


class Builder:
    """
    Collects experiment settings and builds a StylometryAPI.

    One of each pair must be given (the later call of a pair wins):

    - problem_set() or problem_set_path()
    - feature_driver() or feature_driver_path()
    - classifier() or classifier_name()

    Defaults: num_threads=4, num_folds=10,
    analysis_mode=CROSS_VALIDATION, use_doc_titles=False, use_sparse=True,
    load_doc_contents=False.
    """

    def __init__(self):
        self._problem_set = None
        self._feature_driver = None
        self._classifier = None
        self._num_threads = DEFAULT_NUM_THREADS
        self._num_folds = DEFAULT_NUM_FOLDS
        self._analysis_mode = AnalysisMode.CROSS_VALIDATION
        self._use_doc_titles = False
        self._use_sparse = True
        self._load_doc_contents = False

    def problem_set(self, problem_set: ProblemSet) -> "Builder":
        self._problem_set = FromValue(problem_set)
        return self

    def problem_set_path(self, path) -> "Builder":
        self._problem_set = FromPath(str(path))
        return self

    def feature_driver(self, feature_driver: FeatureDriver) -> "Builder":
        self._feature_driver = FromValue(feature_driver)
        return self

    def feature_driver_path(self, path) -> "Builder":
        self._feature_driver = FromPath(str(path))
        return self

    def classifier(self, classifier) -> "Builder":
        """An Analyzer, or an unfitted scikit-learn classifier."""
        self._classifier = FromValue(classifier)
        return self

    def classifier_name(self, name: str) -> "Builder":
        """A registered classifier identifier, resolved by prepare_analyzer()."""
        self._classifier = FromName(name)
        return self

    def num_threads(self, num_threads: int) -> "Builder":
        self._num_threads = num_threads
        return self

    def num_folds(self, num_folds: int) -> "Builder":
        self._num_folds = num_folds
        return self

    def analysis_mode(self, mode) -> "Builder":
        self._analysis_mode = AnalysisMode.parse(mode)
        return self

    def use_doc_titles(self, use_doc_titles: bool) -> "Builder":
        self._use_doc_titles = use_doc_titles
        return self

    def use_sparse(self, use_sparse: bool) -> "Builder":
        self._use_sparse = use_sparse
        return self

    def load_doc_contents(self, load_doc_contents: bool) -> "Builder":
        self._load_doc_contents = load_doc_contents
        return self

    def build_config(self) -> ExperimentConfig:
        """
        Validate the settings and load path-based sources.

        Raises:
            ConfigurationError: If a required pair is unset, num_threads < 1,
                num_folds < 2, or a directly supplied classifier is unusable
        """
        missing = [
            name for name, source in (
                ("problem set", self._problem_set),
                ("feature driver", self._feature_driver),
                ("classifier", self._classifier),
            ) if source is None
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
        if self._num_threads < 1:
            raise ConfigurationError(f"num_threads must be at least 1, got {self._num_threads}")
        if self._num_folds < 2:
            raise ConfigurationError(f"num_folds must be at least 2, got {self._num_folds}")

        problem_set = self._load(
            self._problem_set,
            lambda path: ProblemSet.from_path(path, load_doc_contents=self._load_doc_contents),
            "problem set",
        )
        feature_driver = self._load(self._feature_driver, FeatureDriver.from_path, "feature driver")

        analyzer, classifier_name = None, None
        if isinstance(self._classifier, FromValue):
            analyzer = _wrap_classifier(self._classifier.value)
        else:
            classifier_name = self._classifier.name

        return ExperimentConfig(
            problem_set=problem_set,
            feature_driver=feature_driver,
            analyzer=analyzer,
            classifier_name=classifier_name,
            num_threads=self._num_threads,
            num_folds=self._num_folds,
            analysis_mode=self._analysis_mode,
            use_doc_titles=self._use_doc_titles,
            use_sparse=self._use_sparse,
            load_doc_contents=self._load_doc_contents,
        )

    def build(self) -> "StylometryAPI":
        return StylometryAPI(self.build_config())

    @staticmethod
    def _load(source, loader, description: str):
        if isinstance(source, FromValue):
            return source.value
        try:
            return loader(source.path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to build {description} from {source.path}: {e}")
            return None


class StylometryAPI:
    """
    Runs one authorship attribution experiment.

    Create instances with StylometryAPI.builder(). Intended for one caller
    at a time: prepare_instances(), [prepare_analyzer()], [calc_info_gain(),
    apply_info_gain(n)], run(), then the get_* methods.
    """

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.engine = FeatureEngine()
        if config.problem_set is not None:
            self.engine.set_problem_set(config.problem_set)
        if config.feature_driver is not None:
            self.engine.set_feature_driver(config.feature_driver)
        self.engine.set_use_doc_titles(config.use_doc_titles)
        self.engine.set_load_doc_contents(config.load_doc_contents)
        self.engine.set_use_sparse(config.use_sparse)
        self.engine.set_num_threads(config.num_threads)

        self.analyzer: Optional[Analyzer] = config.analyzer
        self._outcome: Optional[EvaluationOutcome] = None

    @staticmethod
    def builder() -> Builder:
        return Builder()

    # Orchestration

    def prepare_instances(self) -> PreparationReport:
        """
        Run the feature preparation stages in order.

        A failing stage is logged and stops the remaining stages; it is not
        raised. Inspect the returned report (or the feature tables) to see
        how far preparation got.
        """
        report = PreparationReport()
        for stage in PREPARATION_STAGES:
            try:
                getattr(self.engine, stage)()
            except StageFailure as e:
                logger.error(f"Failed to prepare instances: {e}")
                report.failure = e
                break
            report.completed.append(stage)
        return report

    def prepare_analyzer(self) -> bool:
        """
        Resolve the configured classifier identifier into an analyzer.

        Only needed when the experiment was built with classifier_name().
        A resolution failure is logged and leaves the analyzer unset.

        Returns:
            True if an analyzer is ready
        """
        name = self.config.classifier_name
        if name is None:
            logger.info("Analyzer was supplied directly; nothing to resolve")
            return self.analyzer is not None

        try:
            self.analyzer = resolve_analyzer(name)
        except ResolutionFailure as e:
            logger.error(f"Failed to prepare analyzer: {e}")
            self.analyzer = None
            return False
        return True

    def calc_info_gain(self) -> Optional[np.ndarray]:
        """Calculate and cache the info gain of every feature attribute."""
        try:
            return self.engine.calculate_info_gain()
        except ValueError as e:
            logger.error(f"Failed to calculate info gain: {e}")
            return None

    def apply_info_gain(self, n: int) -> bool:
        """Keep only the n most informative attributes in both feature tables."""
        try:
            self.engine.apply_info_gain(n)
        except ValueError as e:
            logger.error(f"Failed to apply info gain: {e}")
            return False
        return True

    def run(self) -> Optional[EvaluationOutcome]:
        """
        Perform the configured evaluation.

        Any previous outcome is discarded first. If the evaluation itself
        fails, the failure is logged and None is returned.

        Raises:
            NotPreparedError: If there is no analyzer, no training table, or
                (for train/test modes) no testing table
        """
        self._outcome = None
        mode = self.config.analysis_mode
        self._check_ready(mode)

        train = self.engine.get_training_table()
        try:
            if mode is AnalysisMode.CROSS_VALIDATION:
                outcome = CrossValidated(self.analyzer.run_cross_validation(
                    train, self.config.num_folds, CROSS_VALIDATION_SEED
                ))
            elif mode is AnalysisMode.TRAIN_TEST_UNKNOWN:
                test = self.engine.get_test_table()
                document_ids = [str(i) for i in test.index]
                outcome = Predicted(self.analyzer.classify(train, test, document_ids))
            else:
                outcome = TrainTestKnown(self._run_train_test_known())
        except Exception as e:
            failure = EvaluationFailure(mode.name, str(e))
            logger.error(f"Failed to run evaluation: {failure}", exc_info=True)
            return None

        self._outcome = outcome
        return outcome

    def _check_ready(self, mode: AnalysisMode):
        if self.analyzer is None:
            raise NotPreparedError(
                "No analyzer: supply a classifier or call prepare_analyzer() with a registered name"
            )
        if self.engine.get_training_table() is None:
            raise NotPreparedError("No training table; call prepare_instances() first")
        if mode is not AnalysisMode.CROSS_VALIDATION and self.engine.get_test_table() is None:
            raise NotPreparedError(f"{mode.name} needs test documents but there is no testing table")

    def _run_train_test_known(self) -> EvaluationResult:
        # Every test document's true author must be among the labels
        problem_set = self.engine.get_problem_set()
        if problem_set is not None:
            problem_set.remove_author(UNKNOWN_AUTHOR)
            labels = problem_set.labels
        else:
            labels = sorted(
                set(class_labels(self.engine.get_training_table())) - {UNKNOWN_AUTHOR, None}
            )

        tables = []
        for table in (self.engine.get_training_table(), self.engine.get_test_table()):
            table = set_class_column(table, labels)
            # Rows of the removed sentinel author have lost their label
            unlabeled = table[CLASS_ATTRIBUTE].isna()
            if unlabeled.any():
                logger.info(f"Dropping {int(unlabeled.sum())} documents without a known author")
                table = table[~unlabeled]
            tables.append(table)

        train, test = tables
        if len(test) == 0:
            raise ValueError("No test documents with a known author")
        self.engine.set_training_table(train)
        self.engine.set_testing_table(test)

        return self.analyzer.get_train_test_eval(train, test)

    # Setters

    def set_training_table(self, table: pd.DataFrame):
        self.engine.set_training_table(table)

    def set_testing_table(self, table: pd.DataFrame):
        self.engine.set_testing_table(table)

    # Accessors

    def get_training_table(self) -> Optional[pd.DataFrame]:
        return self.engine.get_training_table()

    def get_testing_table(self) -> Optional[pd.DataFrame]:
        return self.engine.get_test_table()

    def get_info_gain(self) -> Optional[np.ndarray]:
        """(gain, column index) pairs, most useful first."""
        return self.engine.get_info_gain()

    def get_problem_set(self) -> Optional[ProblemSet]:
        return self.engine.get_problem_set()

    def get_underlying_engine(self) -> FeatureEngine:
        return self.engine

    def get_analyzer(self) -> Optional[Analyzer]:
        return self.analyzer

    def get_underlying_classifier(self):
        """
        The scikit-learn estimator behind the analyzer.

        Analyzer-level helpers such as NaiveBayesAnalyzer.get_feature_weights
        live on get_analyzer(), not on this object.
        """
        if self.analyzer is None:
            return None
        return self.analyzer.get_classifier()

    def get_outcome(self) -> Optional[EvaluationOutcome]:
        return self._outcome

    def get_evaluation(self) -> Optional[EvaluationResult]:
        """Result of the last CROSS_VALIDATION or TRAIN_TEST_KNOWN run."""
        if isinstance(self._outcome, (CrossValidated, TrainTestKnown)):
            return self._outcome.evaluation
        return None

    def get_train_test_results(self) -> Optional[PredictionMap]:
        """Author scores per test document from the last TRAIN_TEST_UNKNOWN run."""
        if isinstance(self._outcome, Predicted):
            return self._outcome.predictions
        return None

    # Reports

    def get_readable_info_gain(self, show_zeroes: bool = False) -> str:
        return reporting.readable_info_gain(
            self.get_info_gain(), self.get_training_table(), show_zeroes=show_zeroes
        )

    def get_stat_string(self) -> str:
        return reporting.stat_string(self.get_evaluation())

    def get_classification_accuracy(self) -> str:
        return reporting.classification_accuracy(self.get_evaluation())

    def plot_confusion_matrix(self, output_path=None, **kwargs):
        from stylometry_api.visualization import generate_confusion_matrix_figure

        evaluation = self.get_evaluation()
        if evaluation is None:
            raise ReportingError("No evaluation result to plot")
        return generate_confusion_matrix_figure(evaluation, output_path=output_path, **kwargs)

    # Export

    @staticmethod
    def write_arff(path, table: pd.DataFrame):
        write_arff(path, table)

    @staticmethod
    def read_arff(path) -> pd.DataFrame:
        return read_arff(path)
