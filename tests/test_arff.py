"""Tests for ARFF export and reload (NO MOCKS - Real files, parsed by scipy)."""

import numpy as np
import pandas as pd
import pytest

from stylometry_api.core.constants import CLASS_ATTRIBUTE, PREPARATION_STAGES, TITLE_ATTRIBUTE
from stylometry_api.documents import Document, ProblemSet
from stylometry_api.features import (
    EventDriver,
    FeatureDriver,
    FeatureEngine,
    read_arff,
    split_features,
    write_arff,
)


def build_table(problem_set, feature_driver, use_sparse, use_doc_titles=False):
    engine = FeatureEngine()
    engine.set_problem_set(problem_set)
    engine.set_feature_driver(feature_driver)
    engine.set_use_sparse(use_sparse)
    engine.set_use_doc_titles(use_doc_titles)
    for stage in PREPARATION_STAGES:
        getattr(engine, stage)()
    return engine.get_training_table()


class TestArffExport:
    """Test writing feature tables as ARFF."""

    def test_header(self, tmp_path, problem_set, feature_driver):
        table = build_table(problem_set, feature_driver, use_sparse=False)
        path = tmp_path / "train.arff"
        write_arff(path, table, relation="fixture")

        text = path.read_text(encoding='utf-8')
        assert text.startswith("@relation fixture")
        # Braces in attribute names force quoting
        assert "@attribute 'words{cat}' numeric" in text
        assert f"@attribute {CLASS_ATTRIBUTE} {{alice,bob}}" in text
        assert "@data" in text

        data_lines = text.split("@data\n")[1].strip().splitlines()
        assert len(data_lines) == 6
        assert data_lines[0].endswith(",alice")

    def test_creates_parent_directories(self, tmp_path, problem_set, feature_driver):
        table = build_table(problem_set, feature_driver, use_sparse=True)
        path = tmp_path / "nested" / "dir" / "train.arff"
        write_arff(path, table)
        assert path.exists()

    def test_missing_class_written_as_question_mark(self, tmp_path):
        table = pd.DataFrame({
            'words{a}': [0.5, 0.25],
            CLASS_ATTRIBUTE: pd.Categorical(['alice', None], categories=['alice', 'bob']),
        })
        path = tmp_path / "missing.arff"
        write_arff(path, table)
        assert path.read_text(encoding='utf-8').strip().endswith("0.25,?")


class TestArffReload:
    """Test that exported tables load back with the same contents."""

    @pytest.mark.parametrize("use_sparse", [True, False])
    def test_reload(self, tmp_path, problem_set, feature_driver, use_sparse):
        table = build_table(problem_set, feature_driver, use_sparse=use_sparse)
        path = tmp_path / "train.arff"
        write_arff(path, table)

        loaded = read_arff(path)
        assert list(loaded.columns) == list(table.columns)

        X_original, y_original = split_features(table)
        X_loaded, y_loaded = split_features(loaded)
        if use_sparse:
            X_original = X_original.toarray()
        np.testing.assert_allclose(X_loaded, X_original)
        assert list(y_loaded) == list(y_original)
        assert list(loaded[CLASS_ATTRIBUTE].cat.categories) == ['alice', 'bob']

    def test_reload_char_events_across_lines(self, tmp_path):
        """Character n-grams that include line breaks survive export and reload."""
        ps = ProblemSet("multiline")
        ps.add_training_document('alice', Document("a1", text="line one\nline two"))
        ps.add_training_document('bob', Document("b1", text="it's\ttabbed\r\nback\\slash"))
        driver = FeatureDriver("chars", [EventDriver("bigrams", analyzer='char', ngram_range=(2, 2))])

        table = build_table(ps, driver, use_sparse=True)
        assert 'bigrams{e\n}' in table.columns
        assert "bigrams{'s}" in table.columns

        path = tmp_path / "multiline.arff"
        write_arff(path, table)
        header = path.read_text(encoding='utf-8').split("@data")[0]
        assert all(
            line.startswith("@") for line in header.splitlines() if line.strip()
        )

        loaded = read_arff(path)
        assert list(loaded.columns) == list(table.columns)
        X_original, _ = split_features(table)
        X_loaded, _ = split_features(loaded)
        np.testing.assert_allclose(X_loaded, X_original.toarray())

    def test_reload_with_titles(self, tmp_path, problem_set, feature_driver):
        table = build_table(problem_set, feature_driver, use_sparse=False, use_doc_titles=True)
        path = tmp_path / "titled.arff"
        write_arff(path, table)

        loaded = read_arff(path)
        assert list(loaded.index) == list(table.index)
        assert loaded.columns[0] == TITLE_ATTRIBUTE
