"""Deletion driver — turns a resolved span into single-character deletes."""
import logging

from kerase.resolver import DeletionGranularity, resolve_deletion_span
from kerase.surface import TextSurface

logger = logging.getLogger(__name__)


def delete_backward_times(surface: TextSurface, times: int):
    """Delete ``times`` characters before the cursor."""
    if times < 0:
        raise ValueError(f"cannot delete a negative number of characters: {times}")
    if times:
        surface.delete_backward_times(times)


def delete_backward(surface: TextSurface, granularity: DeletionGranularity) -> str:
    """Delete one character, word or sentence before the cursor.

    Returns the text that was removed ("" when the surface has no context
    or nothing precedes the cursor).
    """
    context = surface.text_before_cursor()
    if context is None:
        logger.debug("No context before cursor, skipping %s delete", granularity.value)
        return ""

    span = resolve_deletion_span(context, granularity)
    logger.debug("%s delete: %r (%d chars)", granularity.value, span, len(span))
    delete_backward_times(surface, len(span))
    return span
