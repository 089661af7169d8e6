"""Document collections for authorship attribution."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
import logging

import yaml

from stylometry_api.core.constants import UNKNOWN_AUTHOR

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """
    A single document, either held in memory or read lazily from disk.

    Attributes:
        title: Identifier of the document (used as the feature table index)
        author: Author label, or None if not yet filed in a ProblemSet
        path: File to read the text from when ``text`` is unset
        text: Document contents
    """

    title: str
    author: Optional[str] = None
    path: Optional[str] = None
    text: Optional[str] = None

    def load(self) -> str:
        """Return the document text, reading it from ``path`` on first use."""
        if self.text is None:
            if self.path is None:
                raise ValueError(f"Document '{self.title}' has neither text nor path")
            with open(self.path, 'r', encoding='utf-8') as f:
                self.text = f.read()
        return self.text


class ProblemSet:
    """
    Training and test documents grouped by author.

    Test documents of unknown authorship are filed under UNKNOWN_AUTHOR.

    Examples:
        >>> ps = ProblemSet(name="demo")
        >>> ps.add_training_document("austen", Document("emma", text="..."))
        >>> ps.add_test_document(UNKNOWN_AUTHOR, Document("mystery", text="..."))
        >>> ps.authors
        ['austen']
    """

    def __init__(self, name: str = "problem_set"):
        self.name = name
        self._training: Dict[str, List[Document]] = {}
        self._test: Dict[str, List[Document]] = {}

    def add_training_document(self, author: str, document: Document):
        document.author = author
        self._training.setdefault(author, []).append(document)

    def add_test_document(self, author: str, document: Document):
        # Test titles key the prediction map, so they must be unique
        if any(doc.title == document.title for doc in self.get_all_test_docs()):
            raise ValueError(f"Duplicate test document title: {document.title}")
        document.author = author
        self._test.setdefault(author, []).append(document)

    @property
    def authors(self) -> List[str]:
        """Sorted author labels that have training documents."""
        return sorted(self._training.keys())

    @property
    def labels(self) -> List[str]:
        """Sorted author labels across training and test documents."""
        return sorted(set(self._training) | set(self._test))

    def get_training_docs(self, author: str) -> List[Document]:
        return list(self._training.get(author, []))

    def get_all_training_docs(self) -> List[Document]:
        return [doc for author in sorted(self._training) for doc in self._training[author]]

    def get_all_test_docs(self) -> List[Document]:
        return [doc for author in sorted(self._test) for doc in self._test[author]]

    def has_test_docs(self) -> bool:
        return any(self._test.values())

    def remove_author(self, author: str) -> int:
        """
        Remove an author label and all of its documents.

        Args:
            author: Label to remove from both training and test documents

        Returns:
            Number of documents removed (0 if the label was not present)
        """
        removed = len(self._training.pop(author, []))
        removed += len(self._test.pop(author, []))
        if removed:
            logger.debug(f"Removed {removed} documents for author {author}")
        return removed

    def load_contents(self):
        """Read every document's text into memory."""
        for doc in self.get_all_training_docs() + self.get_all_test_docs():
            doc.load()

    def __len__(self):
        return len(self.get_all_training_docs()) + len(self.get_all_test_docs())

    def __repr__(self):
        return (f"ProblemSet(name={self.name!r}, authors={len(self._training)}, "
                f"training={len(self.get_all_training_docs())}, "
                f"test={len(self.get_all_test_docs())})")

    @classmethod
    def from_path(cls, path, load_doc_contents: bool = False) -> "ProblemSet":
        """
        Load a problem set from a YAML definition.

        The file looks like::

            name: demo
            training:
              austen:
                - {title: emma, path: austen/emma.txt}
            test:
              _Unknown_:
                - {title: mystery, text: "It is a truth..."}

        Relative paths are resolved against the YAML file's directory.

        Args:
            path: YAML file describing the problem set
            load_doc_contents: Read all document texts immediately

        Returns:
            ProblemSet

        Raises:
            ValueError: If the definition is malformed
            OSError: If the file (or, with load_doc_contents, a document) cannot be read
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict) or 'training' not in data:
            raise ValueError(f"Problem set {path} must define a 'training' mapping")

        problem_set = cls(name=data.get('name', path.stem))
        base_dir = path.parent

        for section, add in (('training', problem_set.add_training_document),
                             ('test', problem_set.add_test_document)):
            authors = data.get(section) or {}
            if not isinstance(authors, dict):
                raise ValueError(f"'{section}' in {path} must map authors to documents")
            for author, entries in authors.items():
                if entries is not None and not isinstance(entries, list):
                    raise ValueError(f"Documents of '{author}' in {path} must be a list")
                for entry in entries or []:
                    add(str(author), _document_from_entry(entry, base_dir))

        if load_doc_contents:
            problem_set.load_contents()

        logger.info(f"Loaded {problem_set!r} from {path}")
        return problem_set

    @classmethod
    def from_directory(
        cls,
        data_dir,
        test_dir=None,
        load_doc_contents: bool = False
    ) -> "ProblemSet":
        """
        Build a problem set from per-author directories of text files.

        Args:
            data_dir: Directory with one sub-directory of ``*.txt`` files per author
            test_dir: Optional directory of ``*.txt`` files of unknown authorship
            load_doc_contents: Read all document texts immediately

        Returns:
            ProblemSet

        Examples:
            >>> ps = ProblemSet.from_directory("data/cleaned", test_dir="data/disputed")
        """
        data_path = Path(data_dir)
        problem_set = cls(name=data_path.name)

        for author_dir in sorted(p for p in data_path.iterdir() if p.is_dir()):
            for txt_file in sorted(author_dir.glob('*.txt')):
                problem_set.add_training_document(
                    author_dir.name, Document(title=txt_file.stem, path=str(txt_file))
                )

        if test_dir is not None:
            for txt_file in sorted(Path(test_dir).glob('*.txt')):
                problem_set.add_test_document(
                    UNKNOWN_AUTHOR, Document(title=txt_file.stem, path=str(txt_file))
                )

        if load_doc_contents:
            problem_set.load_contents()

        return problem_set


def _document_from_entry(entry, base_dir: Path) -> Document:
    if isinstance(entry, str):
        entry = {'path': entry}
    if not isinstance(entry, dict):
        raise ValueError(f"Invalid document entry: {entry!r}")
    for key in ('title', 'path', 'text'):
        if entry.get(key) is not None and not isinstance(entry[key], str):
            raise ValueError(f"Document entry '{key}' must be a string: {entry!r}")

    doc_path = entry.get('path')
    if doc_path is not None:
        doc_path = Path(doc_path)
        if not doc_path.is_absolute():
            doc_path = base_dir / doc_path
        doc_path = str(doc_path)

    title = entry.get('title') or (Path(doc_path).stem if doc_path else None)
    if title is None or (doc_path is None and entry.get('text') is None):
        raise ValueError(f"Document entry needs a title and a path or text: {entry!r}")

    return Document(title=str(title), path=doc_path, text=entry.get('text'))
