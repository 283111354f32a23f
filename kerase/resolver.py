"""Backward segment resolver — how much text a char/word/sentence delete removes."""
import enum
from typing import Callable, Optional

from kerase.segments import is_sentence_delimiter, is_word_delimiter


class DeletionGranularity(enum.Enum):
    CHARACTER = "char"
    WORD = "word"
    SENTENCE = "sentence"

    @classmethod
    def from_name(cls, name: str) -> "DeletionGranularity":
        """Look up a granularity by value ("word") or member name ("WORD")."""
        key = name.strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(f"unknown deletion granularity: {name!r}")


_CLASSIFIERS = {
    DeletionGranularity.WORD: is_word_delimiter,
    DeletionGranularity.SENTENCE: is_sentence_delimiter,
}


def _trailing_segment_start(text: str, is_delimiter: Callable[[str], bool]) -> int:
    """Index in ``text`` where the trailing segment begins.

    The scan runs over ``text`` with surrounding whitespace stripped. It first
    sweeps delimiters sitting right before the cursor, then one run of
    non-delimiters, and stops at the first delimiter after that run. All
    whitespace after the stop point belongs to the segment. Text holding no
    non-delimiter is consumed whole when its leading whitespace is itself
    made of delimiters (always true for words, true for line breaks in
    sentences).
    """
    stripped = text.strip()
    if not stripped:
        return 0
    offset = len(text) - len(text.lstrip())

    found_non_delimiter = False
    pos = len(stripped)
    while pos > 0:
        delimiter = is_delimiter(stripped[pos - 1])
        if delimiter and found_non_delimiter:
            break
        if not delimiter:
            found_non_delimiter = True
        pos -= 1

    if not found_non_delimiter and all(is_delimiter(c) for c in text[:offset]):
        return 0
    return offset + pos


def resolve_deletion_span(context_text: Optional[str],
                          granularity: DeletionGranularity) -> str:
    """Return the trailing part of ``context_text`` one delete should remove.

    ``None`` (no context available) and ``""`` both resolve to ``""``. The
    result is always a suffix of ``context_text``.
    """
    if not context_text:
        return ""
    if granularity is DeletionGranularity.CHARACTER:
        return context_text[-1]
    try:
        is_delimiter = _CLASSIFIERS[granularity]
    except KeyError:
        raise ValueError(f"unsupported deletion granularity: {granularity!r}") from None
    return context_text[_trailing_segment_start(context_text, is_delimiter):]


def resolve_deletion_count(context_text: Optional[str],
                           granularity: DeletionGranularity) -> int:
    """Number of characters a backward delete of ``granularity`` removes."""
    return len(resolve_deletion_span(context_text, granularity))
