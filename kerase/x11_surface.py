"""X11 text surface — deletes in the focused window with synthetic backspaces."""
import time
import logging
from typing import Optional

from Xlib import X, XK, display
from Xlib.ext import xtest

from kerase.buffer import ContextBuffer
from kerase.surface import TextSurface

logger = logging.getLogger(__name__)

# Held hotkey modifiers would turn our BackSpace into Ctrl+Alt+BackSpace.
_MODIFIER_KEYSYMS = (
    XK.XK_Control_L, XK.XK_Control_R,
    XK.XK_Alt_L, XK.XK_Alt_R,
    XK.XK_Shift_L, XK.XK_Shift_R,
    XK.XK_Super_L, XK.XK_Super_R,
)


class X11Surface(TextSurface):
    """Text before the cursor comes from the keystroke buffer; deleting sends BackSpace."""

    def __init__(self, buffer: ContextBuffer, listener=None, key_delay_ms: int = 10):
        self._buffer = buffer
        self.listener = listener  # X11KeyListener to suppress while deleting
        self._delay = key_delay_ms / 1000.0
        self._display: Optional[display.Display] = None

    def _ensure_display(self):
        if self._display is None:
            self._display = display.Display()

    def text_before_cursor(self) -> Optional[str]:
        return self._buffer.get_context()

    def delete_backward(self):
        self.delete_backward_times(1)

    def delete_backward_times(self, times: int):
        """Send ``times`` backspaces with the listener suppressed."""
        if times <= 0:
            return
        self._ensure_display()
        logger.debug("Sending %d backspaces", times)

        if self.listener:
            self.listener.begin_suppress(times)
        try:
            self._release_modifiers()
            # Let pending events settle
            time.sleep(self._delay)
            for _ in range(times):
                self._send_backspace()
                self._buffer.handle_backspace()
            self._display.flush()
            # Wait for synthetic events to be processed by X server
            time.sleep(self._delay * 5)
        finally:
            if self.listener:
                self.listener.end_suppress()

    def _release_modifiers(self):
        for keysym in _MODIFIER_KEYSYMS:
            keycode = self._display.keysym_to_keycode(keysym)
            if keycode:
                xtest.fake_input(self._display, X.KeyRelease, keycode)
        self._display.flush()

    def _send_backspace(self):
        backspace_code = self._display.keysym_to_keycode(XK.XK_BackSpace)
        xtest.fake_input(self._display, X.KeyPress, backspace_code)
        xtest.fake_input(self._display, X.KeyRelease, backspace_code)
