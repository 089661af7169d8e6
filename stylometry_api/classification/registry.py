"""Registry mapping classifier identifiers to analyzer factories."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging

from sklearn.base import is_classifier
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB, MultinomialNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import LinearSVC

from stylometry_api.classification.analyzer import Analyzer, SklearnAnalyzer
from stylometry_api.classification.classifier import NaiveBayesAnalyzer
from stylometry_api.errors import ResolutionFailure

logger = logging.getLogger(__name__)

LIBRARY = 'library'
SPECIALIZED = 'specialized'


@dataclass(frozen=True)
class RegistryEntry:
    """
    A registered classifier.

    Attributes:
        name: Identifier used in configurations
        factory: Zero-argument callable producing the classifier
        kind: LIBRARY for scikit-learn estimators (wrapped in SklearnAnalyzer),
            SPECIALIZED for Analyzer subclasses (used as-is)
        dense: Library estimators that cannot take sparse input
    """

    name: str
    factory: Callable[[], object]
    kind: str
    dense: bool = False


_REGISTRY: Dict[str, RegistryEntry] = {}


def _register(name: str, kind: str, factory: Optional[Callable] = None, dense: bool = False):
    def decorator(func):
        if name in _REGISTRY:
            raise ValueError(f"Classifier already registered: {name}")
        _REGISTRY[name] = RegistryEntry(name=name, factory=func, kind=kind, dense=dense)
        return func

    if factory is not None:
        return decorator(factory)
    return decorator


def register_classifier(name: str, factory: Optional[Callable] = None, dense: bool = False):
    """
    Register a scikit-learn classifier factory.

    Usable directly or as a decorator:

        >>> @register_classifier('ridge')
        ... def ridge():
        ...     return RidgeClassifier()
    """
    return _register(name, LIBRARY, factory, dense=dense)


def register_analyzer(name: str, factory: Optional[Callable] = None):
    """Register a factory producing a ready-made Analyzer."""
    return _register(name, SPECIALIZED, factory)


def unregister(name: str):
    _REGISTRY.pop(name, None)


def available_classifiers() -> List[str]:
    return sorted(_REGISTRY)


def get_entry(name: str) -> RegistryEntry:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ResolutionFailure(
            name, f"unknown identifier (available: {', '.join(available_classifiers())})"
        ) from None


def resolve_analyzer(name: str) -> Analyzer:
    """
    Instantiate the classifier registered under ``name``.

    Library classifiers are wrapped in SklearnAnalyzer; specialized
    analyzers are returned as produced.

    Raises:
        ResolutionFailure: If the name is unknown, the factory fails, or the
            product does not match its registered kind
    """
    entry = get_entry(name)

    try:
        product = entry.factory()
    except Exception as e:
        raise ResolutionFailure(name, f"factory failed: {e}") from e

    if entry.kind == LIBRARY:
        if not is_classifier(product):
            raise ResolutionFailure(name, f"{type(product).__name__} is not a scikit-learn classifier")
        analyzer = SklearnAnalyzer(product, dense=entry.dense)
    else:
        if not isinstance(product, Analyzer):
            raise ResolutionFailure(name, f"{type(product).__name__} is not an Analyzer")
        analyzer = product

    logger.info(f"Resolved classifier '{name}' to {analyzer!r}")
    return analyzer


# Built-in classifiers

register_classifier('naive_bayes', MultinomialNB)
register_classifier('gaussian_nb', GaussianNB, dense=True)
register_classifier('svm', lambda: LinearSVC(random_state=0))
register_classifier('logistic', lambda: LogisticRegression(max_iter=1000))
register_classifier('random_forest', lambda: RandomForestClassifier(n_estimators=100, random_state=0))
register_classifier('knn', lambda: KNeighborsClassifier(n_neighbors=1))
register_classifier('dummy', lambda: DummyClassifier(strategy='most_frequent'))
register_analyzer('nb_frequency', NaiveBayesAnalyzer)
