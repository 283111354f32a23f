"""X11 global keyboard input listener using XRecord extension."""
import threading
import logging
from typing import Callable, Optional

from Xlib import X, XK, display
from Xlib.ext import record
from Xlib.protocol import rq

logger = logging.getLogger(__name__)

_BACKSPACE = XK.XK_BackSpace
# Chords with these held go to on_special instead of being typed.
_MODIFIER_MASK = X.ControlMask | X.Mod1Mask | X.Mod4Mask
_LEVEL3_MASK = X.Mod5Mask  # AltGr

# Keys that move the cursor (or the focus) without typing anything.
NAVIGATION_KEYSYMS = frozenset((
    XK.XK_Escape, XK.XK_Home, XK.XK_End,
    XK.XK_Left, XK.XK_Right, XK.XK_Up, XK.XK_Down,
    XK.XK_Page_Up, XK.XK_Page_Down,
    XK.XK_KP_Home, XK.XK_KP_End, XK.XK_KP_Left, XK.XK_KP_Right,
    XK.XK_KP_Up, XK.XK_KP_Down, XK.XK_KP_Page_Up, XK.XK_KP_Page_Down,
))

_WHITESPACE_KEYSYMS = {
    XK.XK_space: ' ',
    XK.XK_Tab: '\t',
    XK.XK_Return: '\n',
    XK.XK_KP_Enter: '\n',
    XK.XK_KP_Space: ' ',
    XK.XK_KP_Tab: '\t',
}

# Legacy Cyrillic keysyms (0x06xx) that are not in alphabet order
_CYRILLIC_EXTRA = {
    0x06A1: 0x0452, 0x06A2: 0x0453, 0x06A3: 0x0451,
    0x06A4: 0x0454, 0x06A5: 0x0455, 0x06A6: 0x0456,
    0x06A7: 0x0457, 0x06A8: 0x0458, 0x06A9: 0x0459,
    0x06AA: 0x045A, 0x06AB: 0x045B, 0x06AC: 0x045C,
    0x06AD: 0x0491, 0x06AE: 0x045E, 0x06AF: 0x045F,
    0x06B0: 0x2116,  # №
    0x06B1: 0x0402, 0x06B2: 0x0403, 0x06B3: 0x0401,
    0x06B4: 0x0404, 0x06B5: 0x0405, 0x06B6: 0x0406,
    0x06B7: 0x0407, 0x06B8: 0x0408, 0x06B9: 0x0409,
    0x06BA: 0x040A, 0x06BB: 0x040B, 0x06BC: 0x040C,
    0x06BD: 0x0490, 0x06BE: 0x040E, 0x06BF: 0x040F,
}

# The legacy 0x06C0-0x06FF block follows the KOI8 letter order, not Unicode's.
_CYRILLIC_KOI8 = 'юабцдефгхийклмнопярстужвьызшэщчъ'


def _cyrillic_to_char(keysym: int) -> Optional[str]:
    if keysym in _CYRILLIC_EXTRA:
        return chr(_CYRILLIC_EXTRA[keysym])
    if 0x06C0 <= keysym <= 0x06DF:
        return _CYRILLIC_KOI8[keysym - 0x06C0]
    if 0x06E0 <= keysym <= 0x06FF:
        return _CYRILLIC_KOI8[keysym - 0x06E0].upper()
    return None


def keysym_to_char(keysym: int) -> Optional[str]:
    """Convert an X keysym to the character it types, if any."""
    if keysym in _WHITESPACE_KEYSYMS:
        return _WHITESPACE_KEYSYMS[keysym]
    # Latin-1 keysyms equal their code points
    if 0x20 <= keysym <= 0x7E or 0xA0 <= keysym <= 0xFF:
        return chr(keysym)
    if 0x06A1 <= keysym <= 0x06FF:
        return _cyrillic_to_char(keysym)
    # Keypad * + , - . / 0-9 =
    if 0xFFAA <= keysym <= 0xFFB9 or keysym == XK.XK_KP_Equal:
        return chr(keysym - 0xFF80)
    # Unicode keysyms (0x01xxxxxx)
    if 0x01000100 <= keysym <= 0x0110FFFF:
        return chr(keysym - 0x01000000)
    return None


def types_text(keysym: int) -> bool:
    """True if the key puts text into the app (even when we cannot decode it).

    Everything below 0xFE00 is a legacy character keysym, 0xFE50-0xFEFF are
    dead keys that compose with the next key, and 0x01xxxxxx are Unicode.
    Modifiers, function keys and ISO group switches type nothing.
    """
    return (0 < keysym < 0xFE00 or 0xFE50 <= keysym <= 0xFEFF
            or keysym >= 0x01000000)


class X11KeyListener:
    """Listens to global keyboard and pointer events via XRecord.

    Calls on_key_char(char) for printable characters, on_backspace() for a
    plain backspace, on_special(keysym, state) for Ctrl/Alt/Super chords,
    navigation keys and typed keys it cannot decode, and on_pointer() for
    mouse button presses.
    """

    def __init__(
        self,
        on_key_char: Callable[[str], None],
        on_backspace: Callable[[], None],
        on_special: Optional[Callable[[int, int], None]] = None,
        on_pointer: Optional[Callable[[], None]] = None,
    ):
        self._on_key_char = on_key_char
        self._on_backspace = on_backspace
        self._on_special = on_special
        self._on_pointer = on_pointer
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._record_display = None
        self._local_display = None
        self._ctx = None
        self._suppressed = False  # ignore our own synthetic events
        self._suppress_count = 0
        self._suppress_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self):
        self._running = False
        if self._record_display and self._ctx:
            try:
                self._record_display.record_disable_context(self._ctx)
                self._record_display.flush()
            except Exception as e:
                logger.debug("Disabling record context failed: %s", e)
        if self._thread:
            self._thread.join(timeout=2.0)

    @property
    def suppressed(self) -> bool:
        return self._suppressed

    def begin_suppress(self, expected_events: int = 0):
        """Ignore the synthetic key presses we are about to send."""
        with self._suppress_lock:
            self._suppressed = True
            self._suppress_count = expected_events
            logger.debug("Suppression ON, expecting %d synthetic events", expected_events)

    def end_suppress(self):
        with self._suppress_lock:
            self._suppressed = False
            remaining = self._suppress_count
            self._suppress_count = 0
            if remaining > 0:
                logger.debug("Suppression OFF, %d events were not seen (ok)", remaining)

    def _count_suppressed_event(self):
        with self._suppress_lock:
            if self._suppress_count > 0:
                self._suppress_count -= 1

    def _run(self):
        try:
            self._record_display = display.Display()
            self._local_display = display.Display()

            ctx = self._record_display.record_create_context(
                0,
                [record.AllClients],
                [{
                    'core_requests': (0, 0),
                    'core_replies': (0, 0),
                    'ext_requests': (0, 0, 0, 0),
                    'ext_replies': (0, 0, 0, 0),
                    'delivered_events': (0, 0),
                    'device_events': (X.KeyPress, X.ButtonPress),
                    'errors': (0, 0),
                    'client_started': False,
                    'client_died': False,
                }]
            )
            self._ctx = ctx

            self._record_display.record_enable_context(ctx, self._handle_event)
            self._record_display.record_free_context(ctx)
        except Exception as e:
            logger.error("XRecord listener failed: %s", e)
        finally:
            self._running = False

    def _handle_event(self, reply):
        if reply.category != record.FromServer:
            return
        if reply.client_swapped:
            return
        if not len(reply.data) or reply.data[0] == 0:
            return

        data = reply.data
        while len(data):
            event, data = rq.EventField(None).parse_binary_value(
                data, self._record_display.display, None, None
            )

            if event.type == X.ButtonPress:
                if self._on_pointer and not self._suppressed:
                    self._on_pointer()
            elif event.type == X.KeyPress:
                if self._suppressed:
                    self._count_suppressed_event()
                    continue
                self.process_key(event.detail, event.state)

    def _typed_keysym(self, keycode: int, state: int) -> Optional[int]:
        """Keysym the key types under the current group and Shift state.

        None when the level cannot be read from the core keymap (AltGr, or
        XKB groups 3 and 4).
        """
        group = (state >> 13) & 0x3
        if group > 1 or state & _LEVEL3_MASK:
            return None
        index = group * 2
        keysym = self._local_display.keycode_to_keysym(keycode, index)
        if group and not keysym:
            # Keys without a group 2 binding fall back to group 1
            index = 0
            keysym = self._local_display.keycode_to_keysym(keycode, 0)
        if state & (X.ShiftMask | X.Mod2Mask):
            shifted = self._local_display.keycode_to_keysym(keycode, index + 1)
            # NumLock only shifts the keypad
            if shifted and (state & X.ShiftMask or 0xFF80 <= shifted <= 0xFFBD):
                keysym = shifted
        return keysym

    def process_key(self, keycode: int, state: int):
        """Dispatch one key press to the callbacks."""
        base = self._local_display.keycode_to_keysym(keycode, 0)

        modified = bool(state & _MODIFIER_MASK)
        if base == _BACKSPACE and not modified:
            self._on_backspace()
            return

        keysym = self._typed_keysym(keycode, state)
        if modified or (keysym or base) in NAVIGATION_KEYSYMS:
            if self._on_special:
                self._on_special(base, state)
            return

        char = keysym_to_char(keysym) if keysym else None
        if char:
            if state & X.LockMask and not state & X.ShiftMask and len(char.upper()) == 1:
                char = char.upper()
            self._on_key_char(char)
        elif types_text(keysym or base):
            # Text reached the app that we cannot mirror.
            logger.debug("Untracked keysym 0x%x, dropping context", keysym or base)
            if self._on_special:
                self._on_special(base, state)
