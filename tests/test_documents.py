"""Tests for documents and problem sets (NO MOCKS - Real files on disk)."""

import pytest
import yaml

from stylometry_api.core.constants import UNKNOWN_AUTHOR
from stylometry_api.documents import Document, ProblemSet


class TestDocument:
    """Test lazy document loading."""

    def test_text_in_memory(self):
        doc = Document("d1", text="hello world")
        assert doc.load() == "hello world"

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "d1.txt"
        path.write_text("from disk", encoding='utf-8')

        doc = Document("d1", path=str(path))
        assert doc.text is None
        assert doc.load() == "from disk"
        # Cached after the first read
        assert doc.text == "from disk"

    def test_missing_file_raises(self, tmp_path):
        doc = Document("d1", path=str(tmp_path / "missing.txt"))
        with pytest.raises(OSError):
            doc.load()

    def test_no_text_no_path(self):
        with pytest.raises(ValueError, match="neither text nor path"):
            Document("empty").load()


class TestProblemSet:
    """Test problem set bookkeeping."""

    def test_authors_and_labels(self, problem_set_with_unknown):
        ps = problem_set_with_unknown
        assert ps.authors == ['alice', 'bob']
        assert ps.labels == [UNKNOWN_AUTHOR, 'alice', 'bob']
        assert len(ps) == 7
        assert ps.has_test_docs()

    def test_documents_get_author(self, problem_set):
        for doc in problem_set.get_training_docs('alice'):
            assert doc.author == 'alice'
        assert problem_set.get_training_docs('nobody') == []

    def test_training_docs_ordered_by_author(self, problem_set):
        authors = [doc.author for doc in problem_set.get_all_training_docs()]
        assert authors == ['alice'] * 3 + ['bob'] * 3

    def test_duplicate_test_titles_rejected(self, problem_set_with_unknown):
        with pytest.raises(ValueError, match="Duplicate test document title"):
            problem_set_with_unknown.add_test_document('alice', Document("mystery", text="x"))

    def test_remove_author(self, problem_set_with_unknown):
        ps = problem_set_with_unknown
        assert ps.remove_author(UNKNOWN_AUTHOR) == 1
        assert not ps.has_test_docs()
        assert UNKNOWN_AUTHOR not in ps.labels

        # Removing an absent label is a no-op
        assert ps.remove_author(UNKNOWN_AUTHOR) == 0
        assert len(ps) == 6

    def test_repr(self, problem_set):
        assert "training=6" in repr(problem_set)
        assert "test=0" in repr(problem_set)


class TestProblemSetLoading:
    """Test loading problem sets from YAML and directories."""

    def test_from_path(self, corpus_files):
        ps = ProblemSet.from_path(corpus_files['problem_set'])

        assert ps.name == 'fixture'
        assert ps.authors == ['alice', 'bob']
        assert len(ps.get_all_training_docs()) == 6
        assert [doc.title for doc in ps.get_all_test_docs()] == ['mystery']

        # Paths are resolved against the YAML directory, texts read lazily
        doc = ps.get_training_docs('alice')[0]
        assert doc.text is None
        assert doc.load().startswith("The cat sat")

    def test_from_path_load_contents(self, corpus_files):
        ps = ProblemSet.from_path(corpus_files['problem_set'], load_doc_contents=True)
        assert all(doc.text is not None for doc in ps.get_all_training_docs())

    def test_string_entries_use_file_stem(self, tmp_path):
        (tmp_path / "essay.txt").write_text("some words", encoding='utf-8')
        path = tmp_path / "ps.yaml"
        path.write_text(yaml.safe_dump({'training': {'carol': ['essay.txt']}}), encoding='utf-8')

        ps = ProblemSet.from_path(path)
        assert ps.name == 'ps'
        assert ps.get_training_docs('carol')[0].title == 'essay'

    def test_missing_training_section(self, tmp_path):
        path = tmp_path / "ps.yaml"
        path.write_text(yaml.safe_dump({'test': {}}), encoding='utf-8')
        with pytest.raises(ValueError, match="training"):
            ProblemSet.from_path(path)

    def test_invalid_entry(self, tmp_path):
        path = tmp_path / "ps.yaml"
        path.write_text(yaml.safe_dump({'training': {'carol': [{'title': 'x'}]}}), encoding='utf-8')
        with pytest.raises(ValueError, match="path or text"):
            ProblemSet.from_path(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            ProblemSet.from_path(tmp_path / "nope.yaml")

    def test_from_directory(self, corpus_files, tmp_path):
        disputed = tmp_path / "disputed"
        disputed.mkdir()
        (disputed / "paper_49.txt").write_text("cat on a mat", encoding='utf-8')

        ps = ProblemSet.from_directory(corpus_files['root'] / "corpus", test_dir=disputed)

        assert ps.name == 'corpus'
        assert ps.authors == ['alice', 'bob']
        assert [doc.title for doc in ps.get_training_docs('bob')] == ['bob_0', 'bob_1', 'bob_2']
        test_docs = ps.get_all_test_docs()
        assert [doc.title for doc in test_docs] == ['paper_49']
        assert test_docs[0].author == UNKNOWN_AUTHOR
