"""Heuristic classification of track row text into name, play count and duration.

Track rows render their play count and duration in identically styled
sibling nodes, and no single selector finds the title on every markup
revision. Classification therefore works on plain text fragments read from
the row and assigns fields by content shape and position, never by markup.

Rules live in a table and are evaluated in fixed precedence: for each field
the first rule that produces a value wins. Changing the heuristics means
editing RULES, not the extraction pipeline.

Known limitation: with only two small-text fragments the second-to-last
fallback for play counts does not apply and a count that fails the pattern
check stays at its default. The positional fallbacks are guesses, not
guaranteed-correct classifications.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from spotify_scraper.text_utils import (
    has_digit_group,
    is_numeric,
    looks_like_duration,
    looks_like_stream_count,
)

FIELD_DEFAULTS: Dict[str, str] = {
    'name': "Unknown",
    'duration': "0",
    'stream_count': "0",
}


@dataclass(frozen=True)
class RowFragments:
    """Text read from one track row, each group in document order.

    Attributes:
        row_index: 0-based position of the row on the page
        name_candidates: First-node text of each ranked name selector, in rank order
        link_texts: Text of every link in the row
        leaf_texts: Text of every text-bearing leaf node in the row
        metric_texts: Text of the same-styled small nodes holding count and duration
    """
    row_index: int = 0
    name_candidates: Tuple[str, ...] = ()
    link_texts: Tuple[str, ...] = ()
    leaf_texts: Tuple[str, ...] = ()
    metric_texts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassifiedFields:
    name: str = FIELD_DEFAULTS['name']
    stream_count: str = FIELD_DEFAULTS['stream_count']
    duration: str = FIELD_DEFAULTS['duration']
    # Field name -> label of the rule that resolved it; defaults are absent
    sources: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldRule:
    field: str
    label: str
    pick: Callable[[RowFragments], Optional[str]]


def _first(texts: Iterable[str], predicate: Callable[[str], bool]) -> Optional[str]:
    for text in texts:
        if predicate(text):
            return text
    return None


def _is_plain_label(text: str) -> bool:
    return bool(text and text.strip()) and not is_numeric(text)


def _is_title_like(text: str) -> bool:
    # Durations contain a colon, counts contain digits
    return (len(text) > 2
            and not is_numeric(text)
            and ':' not in text
            and not has_digit_group(text))


def _longest_leaf(fragments: RowFragments) -> Optional[str]:
    candidates = [text for text in fragments.leaf_texts if _is_title_like(text)]
    if not candidates:
        return None
    # max() keeps the first of equally long texts
    return max(candidates, key=len)


def _last_metric(fragments: RowFragments) -> Optional[str]:
    if len(fragments.metric_texts) >= 2:
        return fragments.metric_texts[-1]
    return None


def _second_to_last_metric(fragments: RowFragments) -> Optional[str]:
    if len(fragments.metric_texts) >= 3:
        text = fragments.metric_texts[-2]
        if ':' not in text:
            return text
    return None


RULES: Tuple[FieldRule, ...] = (
    FieldRule('name', 'name selector', lambda f: _first(f.name_candidates, _is_plain_label)),
    FieldRule('name', 'row link', lambda f: _first(f.link_texts, _is_plain_label)),
    FieldRule('name', 'longest text', _longest_leaf),
    FieldRule('duration', 'time pattern', lambda f: _first(f.metric_texts, looks_like_duration)),
    FieldRule('duration', 'last position', _last_metric),
    FieldRule('stream_count', 'count pattern', lambda f: _first(f.metric_texts, looks_like_stream_count)),
    FieldRule('stream_count', 'second-to-last position', _second_to_last_metric),
)


class FieldClassifier:
    """Evaluates a rule table against the fragments of one row."""

    def __init__(self, rules: Sequence[FieldRule] = RULES,
                 defaults: Optional[Dict[str, str]] = None) -> None:
        self.rules = tuple(rules)
        self.defaults = dict(FIELD_DEFAULTS if defaults is None else defaults)
        self.logger = logging.getLogger(__name__)

    def classify(self, fragments: RowFragments) -> ClassifiedFields:
        resolved: Dict[str, str] = {}
        sources: Dict[str, str] = {}

        for rule in self.rules:
            if rule.field in resolved:
                continue
            value = rule.pick(fragments)
            if value and value.strip():
                resolved[rule.field] = value.strip()
                sources[rule.field] = rule.label

        unresolved = [name for name in self.defaults if name not in resolved]
        if unresolved:
            self.logger.debug(f"Row {fragments.row_index}: using defaults for {', '.join(unresolved)}")

        return ClassifiedFields(
            name=resolved.get('name', self.defaults['name']),
            stream_count=resolved.get('stream_count', self.defaults['stream_count']),
            duration=resolved.get('duration', self.defaults['duration']),
            sources=sources,
        )


def classify_fragments(fragments: RowFragments) -> ClassifiedFields:
    """Classify with the default rule table."""
    return FieldClassifier().classify(fragments)
