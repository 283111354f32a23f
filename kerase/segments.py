"""Segment classifier — decides which characters separate words and sentences.

Classification is locale-naive and works on single characters only (no
lookahead), so a period is always a delimiter even inside "3.14" or "e.g".
Apostrophes are treated as part of a word so contractions such as "don't"
and "l'homme" are deleted as one token.
"""

# Terminal punctuation and line breaks. Everything here also separates words.
SENTENCE_DELIMITERS = frozenset(
    '.!?…‼⁇⁈⁉‽。！？'
    '\n\r\N{LINE SEPARATOR}\N{PARAGRAPH SEPARATOR}'
)

WORD_DELIMITERS = SENTENCE_DELIMITERS | frozenset(
    ',;:()[]{}<>"/\\-=+@#$%^&*~`|'
    '“”«»„‚‹›¡¿–—、，'
)


def _check_char(char: str):
    if not isinstance(char, str) or len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")


def is_word_delimiter(char: str) -> bool:
    """True for whitespace and word-separating punctuation."""
    _check_char(char)
    return char.isspace() or char in WORD_DELIMITERS


def is_sentence_delimiter(char: str) -> bool:
    """True for sentence-terminating punctuation and line breaks."""
    _check_char(char)
    return char in SENTENCE_DELIMITERS
