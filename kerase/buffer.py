"""Context buffer — reconstructs the text before the cursor from keystrokes."""


class ContextBuffer:
    """Tracks what the user typed since the cursor last moved out of sight.

    X11 gives no access to another window's text, so the daemon replays
    observed keystrokes here. Everything before the first tracked character
    is unknown: an empty buffer means "no context", never "empty field".
    Once the cursor moves in a way we cannot follow (arrows, clicks,
    Ctrl+BackSpace handled by the app) the buffer is invalidated.
    """

    def __init__(self, max_chars: int = 2000):
        self._chars: list[str] = []
        self._max_chars = max_chars

    @property
    def length(self) -> int:
        return len(self._chars)

    def add_char(self, char: str):
        """Record a typed character, dropping the oldest past max_chars."""
        self._chars.append(char)
        overflow = len(self._chars) - self._max_chars
        if overflow > 0:
            del self._chars[:overflow]

    def handle_backspace(self):
        """Handle backspace key — remove last character from buffer."""
        if self._chars:
            self._chars.pop()

    def get_context(self) -> str | None:
        """Tracked text before the cursor, or None if nothing is tracked."""
        if not self._chars:
            return None
        return ''.join(self._chars)

    def invalidate(self):
        """Forget everything; the cursor moved somewhere we cannot follow."""
        self._chars.clear()
