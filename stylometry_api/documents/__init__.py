"""Document collections."""

from .problem_set import Document, ProblemSet

__all__ = [
    'Document',
    'ProblemSet',
]
