"""Feature drivers: which stylometric events to extract from documents."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple
import logging

import yaml
from sklearn.feature_extraction.text import CountVectorizer

from stylometry_api.core.constants import (
    DEFAULT_TOKEN_PATTERN,
    EVENT_ANALYZERS,
    NORMALIZATIONS,
)

logger = logging.getLogger(__name__)


@dataclass
class EventDriver:
    """
    One family of events, e.g. word unigrams or character bigrams.

    Attributes:
        name: Prefix of the attribute names produced by this driver
        analyzer: 'word', 'char' or 'char_wb' (as in CountVectorizer)
        ngram_range: (min_n, max_n) n-gram sizes
        lowercase: Lowercase text before extraction
        token_pattern: Token regex for word events
        min_df: Minimum number of training documents an event must occur in
        max_features: Keep only this many most frequent events (None keeps all)
        normalization: 'frequency' divides counts by the document's event total,
            'none' keeps raw counts
    """

    name: str
    analyzer: str = 'word'
    ngram_range: Tuple[int, int] = (1, 1)
    lowercase: bool = True
    token_pattern: str = DEFAULT_TOKEN_PATTERN
    min_df: int = 1
    max_features: Optional[int] = None
    normalization: str = 'frequency'

    def __post_init__(self):
        if self.analyzer not in EVENT_ANALYZERS:
            raise ValueError(f"Invalid analyzer: {self.analyzer}. Must be one of {EVENT_ANALYZERS}")
        if self.normalization not in NORMALIZATIONS:
            raise ValueError(
                f"Invalid normalization: {self.normalization}. Must be one of {NORMALIZATIONS}"
            )
        self.ngram_range = tuple(self.ngram_range)
        if len(self.ngram_range) != 2 or self.ngram_range[0] > self.ngram_range[1]:
            raise ValueError(f"Invalid ngram_range for {self.name}: {self.ngram_range}")

    def build_analyzer(self) -> Callable[[str], List[str]]:
        """
        Return a callable that turns a document into its list of events.

        Uses stop_words=None so that function words, the core of most
        stylometric signals, are kept.
        """
        vectorizer = CountVectorizer(
            analyzer=self.analyzer,
            ngram_range=self.ngram_range,
            lowercase=self.lowercase,
            token_pattern=self.token_pattern if self.analyzer == 'word' else None,
            stop_words=None,
        )
        return vectorizer.build_analyzer()

    def attribute_name(self, event: str) -> str:
        return f"{self.name}{{{event}}}"


@dataclass
class FeatureDriver:
    """
    A named collection of event drivers.

    Examples:
        >>> driver = FeatureDriver("basic", [EventDriver("words"),
        ...                                  EventDriver("bigrams", analyzer='char', ngram_range=(2, 2))])
        >>> driver.event_names
        ['words', 'bigrams']
    """

    name: str
    events: List[EventDriver] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        names = [event.name for event in self.events]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate event driver names: {duplicates}")

    @property
    def event_names(self) -> List[str]:
        return [event.name for event in self.events]

    def __len__(self):
        return len(self.events)

    @classmethod
    def from_dict(cls, data: dict, default_name: str = "feature_driver") -> "FeatureDriver":
        if not isinstance(data, dict) or not data.get('events'):
            raise ValueError("Feature driver must define a non-empty 'events' list")
        if not isinstance(data['events'], list):
            raise ValueError(f"Feature driver 'events' must be a list, got {data['events']!r}")

        events = []
        for entry in data['events']:
            if not isinstance(entry, dict) or 'name' not in entry:
                raise ValueError(f"Event driver entry needs a name: {entry!r}")
            try:
                events.append(EventDriver(**entry))
            except TypeError as e:
                # Unknown keys in the entry
                raise ValueError(f"Invalid event driver {entry['name']}: {e}") from e

        return cls(
            name=data.get('name', default_name),
            events=events,
            description=data.get('description', ''),
        )

    @classmethod
    def from_path(cls, path) -> "FeatureDriver":
        """
        Load a feature driver from YAML.

        The file looks like::

            name: basic
            events:
              - {name: words, analyzer: word, max_features: 500}
              - {name: char-bigrams, analyzer: char, ngram_range: [2, 2]}

        Raises:
            ValueError: If the definition is malformed
            OSError: If the file cannot be read
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        driver = cls.from_dict(data, default_name=path.stem)
        logger.info(f"Loaded feature driver '{driver.name}' with {len(driver)} event drivers")
        return driver
