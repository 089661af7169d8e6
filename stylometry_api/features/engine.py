"""Feature extraction engine: turns a problem set into feature tables."""

from collections import Counter
from typing import Dict, List, Optional
import logging

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy import sparse
from sklearn.feature_selection import mutual_info_classif
from tqdm import tqdm

from stylometry_api.core.constants import (
    CLASS_ATTRIBUTE,
    DEFAULT_NUM_THREADS,
    TITLE_ATTRIBUTE,
)
from stylometry_api.documents.problem_set import Document, ProblemSet
from stylometry_api.errors import StageFailure
from stylometry_api.features.arff import write_arff
from stylometry_api.features.driver import FeatureDriver
from stylometry_api.features.tables import feature_columns, split_features

logger = logging.getLogger(__name__)


class FeatureEngine:
    """
    Builds training and test feature tables from a ProblemSet and FeatureDriver.

    Preparation runs in five stages which must be called in order:

    1. extract_events()
    2. initialize_relevant_events()
    3. initialize_attributes()
    4. create_training_table()
    5. create_test_table()

    Each stage raises StageFailure if it cannot complete. Stages 1, 4 and 5
    process documents on ``num_threads`` threads.

    Examples:
        >>> engine = FeatureEngine()
        >>> engine.set_problem_set(problem_set)
        >>> engine.set_feature_driver(driver)
        >>> engine.extract_events()
        >>> engine.initialize_relevant_events()
        >>> engine.initialize_attributes()
        >>> engine.create_training_table()
        >>> engine.create_test_table()
        >>> engine.get_training_table().shape
    """

    def __init__(self):
        self.problem_set: Optional[ProblemSet] = None
        self.feature_driver: Optional[FeatureDriver] = None
        self.use_doc_titles = False
        self.load_doc_contents = False
        self.use_sparse = True
        self.num_threads = DEFAULT_NUM_THREADS
        self._reset()

    def _reset(self):
        self._training_docs: List[Document] = []
        self._test_docs: List[Document] = []
        self._training_events: Optional[List[Dict[str, Counter]]] = None
        self._test_events: Optional[List[Dict[str, Counter]]] = None
        self.relevant_events: Optional[Dict[str, List[str]]] = None
        self.attributes: Optional[List[str]] = None
        self.training_table: Optional[pd.DataFrame] = None
        self.test_table: Optional[pd.DataFrame] = None
        self.info_gain: Optional[np.ndarray] = None

    # Configuration

    def set_problem_set(self, problem_set: ProblemSet):
        self.problem_set = problem_set
        self._reset()

    def set_feature_driver(self, feature_driver: FeatureDriver):
        self.feature_driver = feature_driver
        self._reset()

    def set_use_doc_titles(self, use_doc_titles: bool):
        self.use_doc_titles = use_doc_titles

    def set_load_doc_contents(self, load_doc_contents: bool):
        self.load_doc_contents = load_doc_contents

    def set_use_sparse(self, use_sparse: bool):
        self.use_sparse = use_sparse

    def set_num_threads(self, num_threads: int):
        if num_threads < 1:
            raise ValueError(f"num_threads must be at least 1, got {num_threads}")
        self.num_threads = num_threads

    def set_training_table(self, table: Optional[pd.DataFrame]):
        self.training_table = table

    def set_testing_table(self, table: Optional[pd.DataFrame]):
        self.test_table = table

    # Accessors

    def get_problem_set(self) -> Optional[ProblemSet]:
        return self.problem_set

    def get_training_table(self) -> Optional[pd.DataFrame]:
        return self.training_table

    def get_test_table(self) -> Optional[pd.DataFrame]:
        return self.test_table

    def get_info_gain(self) -> Optional[np.ndarray]:
        return self.info_gain

    # Stage 1

    def extract_events(self):
        """Run every event driver over every training and test document."""
        stage = 'extract_events'
        if self.problem_set is None:
            raise StageFailure(stage, "no problem set")
        if self.feature_driver is None:
            raise StageFailure(stage, "no feature driver")

        self._training_docs = self.problem_set.get_all_training_docs()
        self._test_docs = self.problem_set.get_all_test_docs()
        if not self._training_docs:
            raise StageFailure(stage, "problem set has no training documents")

        analyzers = [(event.name, event.build_analyzer()) for event in self.feature_driver.events]

        def extract(doc: Document) -> Dict[str, Counter]:
            text = doc.load()
            return {name: Counter(analyze(text)) for name, analyze in analyzers}

        docs = self._training_docs + self._test_docs
        try:
            if self.load_doc_contents:
                self.problem_set.load_contents()
            events = Parallel(n_jobs=self.num_threads, prefer="threads")(
                delayed(extract)(doc) for doc in tqdm(docs, desc="Extracting events")
            )
        except (OSError, ValueError) as e:
            raise StageFailure(stage, str(e)) from e

        n_train = len(self._training_docs)
        self._training_events = events[:n_train]
        self._test_events = events[n_train:]
        self.relevant_events = None
        self.attributes = None
        logger.info(f"Extracted events from {len(docs)} documents")

    # Stage 2

    def initialize_relevant_events(self):
        """Select, per event driver, the training events to turn into attributes."""
        stage = 'initialize_relevant_events'
        if self._training_events is None:
            raise StageFailure(stage, "events have not been extracted")

        relevant = {}
        for event in self.feature_driver.events:
            totals = Counter()
            doc_freq = Counter()
            for counts in self._training_events:
                totals.update(counts[event.name])
                doc_freq.update(counts[event.name].keys())

            candidates = [e for e in totals if doc_freq[e] >= event.min_df]
            candidates.sort(key=lambda e: (-totals[e], e))
            if event.max_features is not None:
                candidates = candidates[:event.max_features]
            relevant[event.name] = sorted(candidates)
            logger.debug(f"{event.name}: kept {len(candidates)} of {len(totals)} events")

        self.relevant_events = relevant
        self.attributes = None

    # Stage 3

    def initialize_attributes(self):
        """Build the attribute list: [title], features..., class."""
        stage = 'initialize_attributes'
        if self.relevant_events is None:
            raise StageFailure(stage, "relevant events have not been initialized")

        features = [
            event.attribute_name(e)
            for event in self.feature_driver.events
            for e in self.relevant_events[event.name]
        ]
        if not features:
            raise StageFailure(stage, "no relevant events in the training documents")

        prefix = [TITLE_ATTRIBUTE] if self.use_doc_titles else []
        self.attributes = prefix + features + [CLASS_ATTRIBUTE]
        self.training_table = None
        self.test_table = None
        self.info_gain = None
        logger.info(f"Initialized {len(features)} feature attributes")

    # Stages 4 and 5

    def create_training_table(self):
        stage = 'create_training_table'
        if self.attributes is None:
            raise StageFailure(stage, "attributes have not been initialized")
        self.training_table = self._build_table(self._training_docs, self._training_events)
        logger.info(f"Training table: {self.training_table.shape[0]} documents x "
                    f"{len(self.attributes)} attributes")

    def create_test_table(self):
        stage = 'create_test_table'
        if self.attributes is None:
            raise StageFailure(stage, "attributes have not been initialized")
        if not self._test_docs:
            self.test_table = None
            logger.info("No test documents; skipping test table")
            return
        self.test_table = self._build_table(self._test_docs, self._test_events)
        logger.info(f"Test table: {self.test_table.shape[0]} documents")

    def _vectorize(self, counts: Dict[str, Counter]) -> np.ndarray:
        parts = []
        for event in self.feature_driver.events:
            event_counts = counts[event.name]
            values = np.array(
                [event_counts.get(e, 0) for e in self.relevant_events[event.name]], dtype=float
            )
            if event.normalization == 'frequency':
                # Removes document length as a feature
                total = sum(event_counts.values())
                if total > 0:
                    values = values / total
            parts.append(values)
        return np.concatenate(parts)

    def _build_table(self, docs: List[Document], events: List[Dict[str, Counter]]) -> pd.DataFrame:
        columns = [a for a in self.attributes if a not in (TITLE_ATTRIBUTE, CLASS_ATTRIBUTE)]
        rows = Parallel(n_jobs=self.num_threads, prefer="threads")(
            delayed(self._vectorize)(counts) for counts in events
        )
        matrix = np.vstack(rows)
        index = [doc.title for doc in docs]

        if self.use_sparse:
            table = pd.DataFrame.sparse.from_spmatrix(
                sparse.csr_matrix(matrix), index=index, columns=columns
            )
        else:
            table = pd.DataFrame(matrix, index=index, columns=columns)

        if self.use_doc_titles:
            table.insert(0, TITLE_ATTRIBUTE, index)
        table[CLASS_ATTRIBUTE] = pd.Categorical(
            [doc.author for doc in docs], categories=self.problem_set.labels
        )
        return table

    # Info gain

    def calculate_info_gain(self) -> np.ndarray:
        """
        Score every feature attribute by its mutual information with the author.

        Returns:
            Array of shape (n_features, 2) holding (gain, column index) pairs,
            sorted by descending gain

        Raises:
            ValueError: If the training table has not been created
        """
        if self.training_table is None:
            raise ValueError("Training table has not been created")

        table = self.training_table
        columns = feature_columns(table)
        positions = np.array([table.columns.get_loc(c) for c in columns], dtype=float)

        X, y = split_features(table)
        if sparse.issparse(X):
            X = X.toarray()
        gains = mutual_info_classif(X, y, discrete_features=False, random_state=0)

        order = np.argsort(-gains, kind='mergesort')
        self.info_gain = np.column_stack([gains[order], positions[order]])
        return self.info_gain

    def apply_info_gain(self, n: int):
        """
        Keep only the ``n`` highest-ranked feature attributes in both tables.

        Kept features appear in ranked order; title and class columns stay.
        The cached ranking is re-indexed to the new column positions.
        """
        if self.info_gain is None:
            raise ValueError("Info gain has not been calculated")
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")

        n = min(n, len(self.info_gain))
        keep = [self.training_table.columns[int(i)] for i in self.info_gain[:n, 1]]

        def reduce(table: pd.DataFrame) -> pd.DataFrame:
            prefix = [TITLE_ATTRIBUTE] if TITLE_ATTRIBUTE in table.columns else []
            return table[prefix + keep + [CLASS_ATTRIBUTE]]

        self.training_table = reduce(self.training_table)
        if self.test_table is not None:
            self.test_table = reduce(self.test_table)

        positions = [self.training_table.columns.get_loc(c) for c in keep]
        self.info_gain = np.column_stack([self.info_gain[:n, 0], np.array(positions, dtype=float)])
        self.attributes = list(self.training_table.columns)
        logger.info(f"Reduced feature tables to {n} attributes by info gain")

    @staticmethod
    def write_to_arff(path, table: pd.DataFrame):
        write_arff(path, table)
