"""Key presses decoded by the listener and handled by the daemon.

The local display is a MagicMock keymap and XTest is patched, so no X
server is needed. Each keycode lists four keysyms: group 1 plain/shifted,
then group 2 plain/shifted (a us,ru layout).
"""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from unittest.mock import MagicMock, patch

import pytest
from Xlib import X, XK

from kerase.config import Config
from kerase.daemon import Daemon
from kerase.x11_input import X11KeyListener

GROUP2 = 1 << 13
CTRL_ALT = X.ControlMask | X.Mod1Mask

KEY_A, KEY_S, KEY_W, KEY_C, KEY_SEMICOLON = 38, 39, 25, 54, 47
KEY_SPACE, KEY_BACKSPACE, KEY_LEFT, KEY_KP1 = 65, 22, 113, 87
KEY_GREEK, KEY_DEAD, KEY_RU = 52, 49, 60

_KEYMAP = {
    KEY_A: (XK.XK_a, XK.XK_A, 0x06C6, 0x06E6),               # a / ф
    KEY_S: (XK.XK_s, XK.XK_S, 0x06D9, 0x06F9),               # s / ы
    KEY_W: (XK.XK_w, XK.XK_W, 0x06C3, 0x06E3),               # w / ц
    KEY_C: (XK.XK_c, XK.XK_C, 0x06D3, 0x06F3),               # c / с
    KEY_SEMICOLON: (XK.XK_semicolon, XK.XK_colon, 0x06D6, 0x06F6),
    KEY_SPACE: (XK.XK_space,) * 4,
    KEY_BACKSPACE: (XK.XK_BackSpace,) * 4,
    KEY_LEFT: (XK.XK_Left,) * 4,
    KEY_KP1: (XK.XK_KP_End, XK.XK_KP_1, 0, 0),
    KEY_GREEK: (0x07E1, 0x07C1, 0, 0),                       # Greek alpha
    KEY_DEAD: (0xFE51, 0xFE51, 0, 0),                        # dead acute
    KEY_RU: (0x06D3, 0x06F3, 0, 0),                          # Cyrillic-only layout
}


def make_pair(tmp_path, **overrides):
    config = Config(path=tmp_path / "config.json")
    config._data["key_delay_ms"] = 0
    config._data.update(overrides)
    daemon = Daemon(config)
    daemon._surface._display = MagicMock()

    listener = X11KeyListener(
        on_key_char=daemon._on_key_char,
        on_backspace=daemon._on_backspace,
        on_special=daemon._on_special,
        on_pointer=daemon._on_pointer,
    )
    local = MagicMock()
    local.keycode_to_keysym.side_effect = lambda keycode, index: _KEYMAP[keycode][index]
    listener._local_display = local
    daemon._surface.listener = listener
    return daemon, listener


def press(daemon, listener, keycode, state=0):
    listener.process_key(keycode, state)
    if daemon._worker is not None:
        daemon._worker.join(timeout=2.0)


def backspace_presses(xtest):
    return [c for c in xtest.fake_input.call_args_list if c.args[1] == X.KeyPress]


def test_cyrillic_from_second_group_is_tracked(tmp_path):
    daemon, listener = make_pair(tmp_path)
    for keycode in (KEY_A, KEY_A, KEY_SPACE):
        press(daemon, listener, keycode)
    press(daemon, listener, KEY_C, GROUP2)
    press(daemon, listener, KEY_C, GROUP2 | X.ShiftMask)
    assert daemon.buffer.get_context() == "aa сС"

    with patch('kerase.x11_surface.xtest') as xtest:
        press(daemon, listener, KEY_W, CTRL_ALT | GROUP2)
    assert len(backspace_presses(xtest)) == 2
    assert daemon.buffer.get_context() == "aa "


def test_legacy_cyrillic_keysym_in_first_group(tmp_path):
    daemon, listener = make_pair(tmp_path)
    for keycode in (KEY_A, KEY_A, KEY_A, KEY_A, KEY_SPACE, KEY_RU, KEY_RU):
        press(daemon, listener, keycode)
    assert daemon.buffer.get_context() == "aaaa сс"

    with patch('kerase.x11_surface.xtest') as xtest:
        press(daemon, listener, KEY_W, CTRL_ALT)
    assert len(backspace_presses(xtest)) == 2
    assert daemon.buffer.get_context() == "aaaa "


@pytest.mark.parametrize("keycode,state", [
    (KEY_GREEK, 0),                 # no decoder for legacy Greek
    (KEY_DEAD, 0),                  # composes with the next key
    (KEY_A, X.Mod5Mask),            # AltGr level
    (KEY_A, 2 << 13),               # third XKB group
])
def test_undecodable_typing_drops_context(tmp_path, keycode, state):
    daemon, listener = make_pair(tmp_path)
    for code in (KEY_A, KEY_A, KEY_SPACE):
        press(daemon, listener, code)
    press(daemon, listener, keycode, state)
    assert daemon.buffer.get_context() is None

    with patch('kerase.x11_surface.xtest') as xtest:
        press(daemon, listener, KEY_W, CTRL_ALT)
    assert xtest.fake_input.call_count == 0


@pytest.mark.parametrize("hotkey,keycode,state", [
    ("ctrl+w", KEY_W, X.ControlMask),
    ("alt+w", KEY_W, X.Mod1Mask),
    ("super+w", KEY_W, X.Mod4Mask),
    ("ctrl+shift+w", KEY_W, X.ControlMask | X.ShiftMask),
    ("super+shift+semicolon", KEY_SEMICOLON, X.Mod4Mask | X.ShiftMask),
    ("ctrl+alt+super+w", KEY_W, CTRL_ALT | X.Mod4Mask),
])
def test_word_hotkey_for_every_modifier(tmp_path, hotkey, keycode, state):
    daemon, listener = make_pair(tmp_path, hotkey_delete_word=hotkey)
    for code in (KEY_A, KEY_A, KEY_SPACE, KEY_A):
        press(daemon, listener, code)

    with patch('kerase.x11_surface.xtest') as xtest:
        press(daemon, listener, keycode, state | X.Mod2Mask)
    assert len(backspace_presses(xtest)) == 1
    assert daemon.buffer.get_context() == "aa "


def test_shift_only_hotkey_rejected(tmp_path):
    with pytest.raises(ValueError):
        make_pair(tmp_path, hotkey_delete_word="shift+w")


def test_caps_lock_and_numlock(tmp_path):
    daemon, listener = make_pair(tmp_path)
    press(daemon, listener, KEY_A, X.LockMask)
    press(daemon, listener, KEY_KP1, X.Mod2Mask)
    assert daemon.buffer.get_context() == "A1"

    press(daemon, listener, KEY_KP1)       # KP_End without NumLock
    assert daemon.buffer.get_context() is None


def test_navigation_from_listener_drops_context(tmp_path):
    daemon, listener = make_pair(tmp_path)
    press(daemon, listener, KEY_A)
    press(daemon, listener, KEY_LEFT)
    assert daemon.buffer.get_context() is None
