"""KErase — word and sentence backspace for X11."""
from kerase.deleter import delete_backward, delete_backward_times
from kerase.resolver import DeletionGranularity, resolve_deletion_count, resolve_deletion_span
from kerase.segments import is_sentence_delimiter, is_word_delimiter
from kerase.surface import MemorySurface, TextSurface

__version__ = "0.1.0"

__all__ = [
    "DeletionGranularity",
    "MemorySurface",
    "TextSurface",
    "delete_backward",
    "delete_backward_times",
    "is_sentence_delimiter",
    "is_word_delimiter",
    "resolve_deletion_count",
    "resolve_deletion_span",
]
