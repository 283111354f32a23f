"""Host text surfaces — where deletions are applied."""
from typing import Optional


class TextSurface:
    """The two operations a host text field has to offer.

    ``text_before_cursor`` returns None when the host cannot tell what
    precedes the cursor. ``delete_backward`` removes exactly one character
    and must be safe to call on an empty field.
    """

    def text_before_cursor(self) -> Optional[str]:
        raise NotImplementedError

    def delete_backward(self):
        raise NotImplementedError

    def delete_backward_times(self, times: int):
        """Delete ``times`` characters. Subclasses may batch this."""
        for _ in range(times):
            self.delete_backward()


class MemorySurface(TextSurface):
    """In-memory text field, cursor always at the end."""

    def __init__(self, text: str = "", known: bool = True):
        self._chars: list[str] = list(text)
        self._known = known
        self.deletions = 0

    @property
    def text(self) -> str:
        return ''.join(self._chars)

    def text_before_cursor(self) -> Optional[str]:
        if not self._known:
            return None
        return self.text

    def delete_backward(self):
        self.deletions += 1
        if self._chars:
            self._chars.pop()
