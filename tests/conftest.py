#!/usr/bin/env python
"""
Pytest configuration and shared fixtures.

Fixtures build small, real corpora (two authors with clearly different
vocabularies) either in memory or on disk. NO MOCKS - every test runs the
real feature extraction and scikit-learn classifiers.
"""

import sys
from pathlib import Path

import pytest
import yaml

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stylometry_api.core.constants import UNKNOWN_AUTHOR
from stylometry_api.documents import Document, ProblemSet
from stylometry_api.features import EventDriver, FeatureDriver


TRAINING_TEXTS = {
    'alice': [
        "The cat sat on the mat. The cat was happy and the mat was warm.",
        "A cat and another cat played on the old mat near the door.",
        "The small cat slept on the mat while the rain fell on the roof.",
    ],
    'bob': [
        "Rockets launch quickly into orbit; engines roar, fuel burns, rockets climb.",
        "Engines ignite and rockets burn fuel to reach orbit beyond clouds.",
        "Orbit requires rockets with powerful engines and carefully measured fuel.",
    ],
}

UNKNOWN_TEXT = "The cat curled up on the warm mat by the door."

KNOWN_TEST_TEXTS = {
    'alice': "The old cat and the young cat shared the mat.",
    'bob': "Fuel for the rockets feeds engines bound for orbit.",
}


def make_problem_set(unknown: bool = False, known_test: bool = False) -> ProblemSet:
    problem_set = ProblemSet(name="fixture")
    for author, texts in TRAINING_TEXTS.items():
        for i, text in enumerate(texts):
            problem_set.add_training_document(author, Document(f"{author}_{i}", text=text))
    if unknown:
        problem_set.add_test_document(UNKNOWN_AUTHOR, Document("mystery", text=UNKNOWN_TEXT))
    if known_test:
        for author, text in KNOWN_TEST_TEXTS.items():
            problem_set.add_test_document(author, Document(f"{author}_test", text=text))
    return problem_set


@pytest.fixture
def problem_set():
    """Two authors, three training documents each, no test documents."""
    return make_problem_set()


@pytest.fixture
def problem_set_with_unknown():
    """Training documents plus one test document of unknown authorship."""
    return make_problem_set(unknown=True)


@pytest.fixture
def problem_set_with_known_test():
    """Training documents plus one test document per known author."""
    return make_problem_set(known_test=True)


@pytest.fixture
def feature_driver():
    """Word unigram frequencies."""
    return FeatureDriver("words", [EventDriver("words", analyzer='word')])


@pytest.fixture
def corpus_files(tmp_path):
    """
    Write the fixture corpus, a problem set definition and a feature driver to disk.

    Returns dict with keys: problem_set, feature_driver, root
    """
    training = {}
    for author, texts in TRAINING_TEXTS.items():
        author_dir = tmp_path / "corpus" / author
        author_dir.mkdir(parents=True)
        training[author] = []
        for i, text in enumerate(texts):
            doc_path = author_dir / f"{author}_{i}.txt"
            doc_path.write_text(text, encoding='utf-8')
            training[author].append({'title': f"{author}_{i}", 'path': f"corpus/{author}/{doc_path.name}"})

    problem_set_path = tmp_path / "problem_set.yaml"
    with open(problem_set_path, 'w') as f:
        yaml.safe_dump({
            'name': 'fixture',
            'training': training,
            'test': {UNKNOWN_AUTHOR: [{'title': 'mystery', 'text': UNKNOWN_TEXT}]},
        }, f)

    feature_driver_path = tmp_path / "features.yaml"
    with open(feature_driver_path, 'w') as f:
        yaml.safe_dump({
            'name': 'basic',
            'events': [
                {'name': 'words', 'analyzer': 'word'},
                {'name': 'bigrams', 'analyzer': 'char', 'ngram_range': [2, 2], 'max_features': 50},
            ],
        }, f)

    return {
        'problem_set': problem_set_path,
        'feature_driver': feature_driver_path,
        'root': tmp_path,
    }
