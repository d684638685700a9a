"""Text shape predicates for track row fragments."""

import re

# Characters used as thousands separators across locales: comma, no-break
# space, narrow no-break space, thin space and plain space
THOUSANDS_SEPARATORS = ',\u00a0\u202f\u2009 '

_SEPARATOR_CLASS = '[' + re.escape(THOUSANDS_SEPARATORS) + ']'
_NUMBER_CHARS = '[' + re.escape(THOUSANDS_SEPARATORS) + r'.\d]'

DURATION_PATTERN = re.compile(r'\d+:\d+')
DIGIT_GROUP_PATTERN = re.compile(r'\d{1,3}(?:' + _SEPARATOR_CLASS + r'\d{3})+|\d+')
ABBREVIATED_PATTERN = re.compile(r'\d+(?:[.,]\d+)?\s*[KMB]', re.IGNORECASE)
# Whole text is a number: "3", "-1", "1,045,221", "4.5"
NUMERIC_PATTERN = re.compile(r'\s*[+-]?' + _NUMBER_CHARS + r'*\d' + _NUMBER_CHARS + r'*\s*')
WHITESPACE_PATTERN = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace and strip the ends."""
    if not text:
        return ""
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def is_numeric(text: str) -> bool:
    """True if text is purely numeric, e.g. a row number like "3" or a count like "1,045,221".

    Titles that merely start with a digit, like "7 rings", are not numeric.
    """
    return bool(text) and NUMERIC_PATTERN.fullmatch(text) is not None


def has_digit_group(text: str) -> bool:
    """True if any run of digits appears in text."""
    return bool(text) and DIGIT_GROUP_PATTERN.search(text) is not None


def looks_like_duration(text: str) -> bool:
    """True for time formats like "3:47" or "1:02:09"."""
    return bool(text) and DURATION_PATTERN.search(text) is not None


def looks_like_stream_count(text: str) -> bool:
    """True for "1,045,221", "987" or abbreviated "1.2M" / "45K".

    Anything containing a colon is rejected so durations are never read as
    counts, and single characters are rejected as row numbers or badges.
    """
    if not text or ':' in text or len(text) <= 1:
        return False
    text = text.strip()
    return (DIGIT_GROUP_PATTERN.fullmatch(text) is not None
            or ABBREVIATED_PATTERN.fullmatch(text) is not None)
