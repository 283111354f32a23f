"""Core daemon — ties together input listener, context buffer and deletion hotkeys."""
import threading
import logging
from typing import Optional

from Xlib import X, XK

from kerase.buffer import ContextBuffer
from kerase.config import Config
from kerase.deleter import delete_backward
from kerase.resolver import DeletionGranularity
from kerase.x11_surface import X11Surface

logger = logging.getLogger(__name__)

_MODIFIERS = {
    "ctrl": X.ControlMask,
    "control": X.ControlMask,
    "shift": X.ShiftMask,
    "alt": X.Mod1Mask,
    "super": X.Mod4Mask,
}
# Lock and NumLock must not affect hotkey matching.
_HOTKEY_MASK = X.ControlMask | X.ShiftMask | X.Mod1Mask | X.Mod4Mask
# The listener only reports chords holding one of these.
_CHORD_MASK = X.ControlMask | X.Mod1Mask | X.Mod4Mask


def parse_hotkey(hotkey: str) -> tuple[int, int]:
    """Parse "ctrl+alt+w" into (modifier mask, keysym).

    The key is either a single character or an X keysym name ("BackSpace",
    "F5", "semicolon"). At least one of ctrl, alt or super is required;
    Shift alone would just type the key.
    """
    if not isinstance(hotkey, str):
        raise ValueError(f"hotkey must be a string like \"ctrl+alt+w\", got {hotkey!r}")
    parts = [p.strip() for p in hotkey.split("+")]
    if len(parts) < 2 or not all(parts):
        raise ValueError(f"hotkey needs at least one modifier and a key: {hotkey!r}")

    mask = 0
    for name in parts[:-1]:
        try:
            mask |= _MODIFIERS[name.lower()]
        except KeyError:
            raise ValueError(f"unknown modifier {name!r} in hotkey {hotkey!r}") from None
    if not mask & _CHORD_MASK:
        raise ValueError(f"hotkey needs ctrl, alt or super: {hotkey!r}")

    key = parts[-1]
    if len(key) == 1:
        keysym = ord(key.lower())
        if keysym > 0xFF:
            # Hotkeys match the first-group keysym, which is Latin on most layouts
            raise ValueError(f"use a Latin key or an X keysym name in hotkey {hotkey!r}")
    else:
        keysym = XK.string_to_keysym(key)
    if keysym == X.NoSymbol:
        raise ValueError(f"unknown key {key!r} in hotkey {hotkey!r}")
    return mask, keysym


class Daemon:
    """Background daemon tracking typed context and serving delete hotkeys."""

    def __init__(self, config: Config):
        self.config = config
        self._running = False
        self._listener = None
        self._buffer = ContextBuffer(max_chars=config.max_context_chars)
        self._surface = X11Surface(self._buffer, key_delay_ms=config.key_delay_ms)
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._hotkeys = self._load_hotkeys()

    @property
    def running(self) -> bool:
        if self._listener is not None and not self._listener.running:
            return False
        return self._running

    @property
    def buffer(self) -> ContextBuffer:
        return self._buffer

    def _load_hotkeys(self) -> dict[tuple[int, int], str]:
        hotkeys = {}
        for action, hotkey in self.config.hotkeys.items():
            combo = parse_hotkey(hotkey)
            if combo in hotkeys:
                raise ValueError(f"hotkey {hotkey!r} is bound to both "
                                 f"{hotkeys[combo]!r} and {action!r}")
            hotkeys[combo] = action
        return hotkeys

    def start(self):
        if self._running:
            return
        self._running = True

        try:
            from kerase.x11_input import X11KeyListener
            self._listener = X11KeyListener(
                on_key_char=self._on_key_char,
                on_backspace=self._on_backspace,
                on_special=self._on_special,
                on_pointer=self._on_pointer,
            )
            self._surface.listener = self._listener
            self._listener.start()
            logger.info("Daemon started, X11 input listener active")
        except Exception as e:
            logger.error("Failed to start X11 listener: %s", e)
            self._running = False

    def stop(self):
        self._running = False
        if self._listener:
            self._listener.stop()
        if self._worker:
            self._worker.join(timeout=2.0)
        logger.info("Daemon stopped")

    def _on_key_char(self, char: str):
        """Called for each printable character typed."""
        with self._lock:
            self._buffer.add_char(char)

    def _on_backspace(self):
        with self._lock:
            self._buffer.handle_backspace()

    def _on_pointer(self):
        # A click may have moved the caret or focused another field.
        with self._lock:
            self._buffer.invalidate()

    def _on_special(self, keysym: int, state: int):
        """Called for modified and navigation keys."""
        action = self._hotkeys.get((state & _HOTKEY_MASK, keysym))

        if action == "toggle":
            self.config.enabled = not self.config.enabled
            logger.info("Toggled enabled: %s", self.config.enabled)
            return

        if action is not None:
            if self.config.enabled:
                self._start_delete(DeletionGranularity.from_name(action))
            return

        # Navigation, paste, undo, app-side word delete: context is now unknown.
        with self._lock:
            self._buffer.invalidate()

    def _start_delete(self, granularity: DeletionGranularity):
        """Delete off the listener thread so it can swallow our synthetic keys."""
        if self._worker is not None and self._worker.is_alive():
            logger.debug("Delete already in progress, ignoring %s", granularity.value)
            return
        self._worker = threading.Thread(target=self.delete, args=(granularity,),
                                        daemon=True)
        self._worker.start()

    def delete(self, granularity: DeletionGranularity) -> str:
        """Delete one char/word/sentence before the cursor in the focused window."""
        with self._lock:
            try:
                span = delete_backward(self._surface, granularity)
            except Exception as e:
                logger.error("%s delete failed: %s", granularity.value, e)
                self._buffer.invalidate()
                return ""
        if span:
            logger.info("Deleted %s: %r", granularity.value, span)
        else:
            logger.debug("Nothing to delete for %s", granularity.value)
        return span
