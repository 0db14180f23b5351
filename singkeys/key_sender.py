"""
KeySender — inject detected symbols into the operating system.

Every press is a click: the key goes down and straight back up.  The
class attempts to use the Linux ``uinput`` backend for low-level input
synthesis; if that fails (for example on non-Linux platforms or without
access to ``/dev/uinput``) it falls back to ``pynput``.  If both backends
are unavailable the intended keystrokes are only logged.

Keeping the key-sending logic in its own module isolates the platform
dependencies and lets the analysis loop be tested with a fake injector.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from .pitch_map import Symbol

logger = logging.getLogger(__name__)


class KeySender:
    """Dispatches symbols to the operating system as key clicks.

    Symbols are resolved through their friendly key name
    (:attr:`Symbol.key_name`): single characters such as ``"x"`` map to
    the corresponding letter key, and special names such as ``"left"``,
    ``"backspace"`` or ``"enter"`` map through :attr:`_SPECIAL_KEYS`.
    Unknown names are ignored with a debug message.

    Args:
        send_enabled: When ``False`` no key events are emitted.  Used for
            dry runs where symbols are detected and logged only.
    """

    # Mapping of friendly key names to (uinput constant name, pynput key)
    _SPECIAL_KEYS: dict[str, tuple[str, str]] = {
        "space": ("KEY_SPACE", "space"),
        "enter": ("KEY_ENTER", "enter"),
        "tab": ("KEY_TAB", "tab"),
        "esc": ("KEY_ESC", "esc"),
        "left": ("KEY_LEFT", "left"),
        "right": ("KEY_RIGHT", "right"),
        "up": ("KEY_UP", "up"),
        "down": ("KEY_DOWN", "down"),
        "backspace": ("KEY_BACKSPACE", "backspace"),
    }

    def __init__(self, send_enabled: bool = True) -> None:
        self.send_enabled: bool = send_enabled
        self.backend: str = "none"
        self.dev: Any = None
        self.ctrl: Any = None
        try:
            import uinput  # type: ignore
        except ImportError:
            self._setup_pynput("python-uinput not found, falling back to pynput")
            return

        # Register every key a symbol can produce
        requested_codes: set[tuple[int, int]] = set()
        for symbol in Symbol:
            code = self._to_uinput_code(symbol.key_name)
            if code is not None:
                requested_codes.add(code)

        try:
            self.dev = uinput.Device(sorted(requested_codes), name="SingKeys")
            self.backend = "uinput"
        except PermissionError:
            self._setup_pynput(
                "Cannot open /dev/uinput (permission denied); run "
                "'singkeys --setup-uinput' once to grant access. "
                "Falling back to pynput"
            )
        except Exception as e:
            self._setup_pynput(f"uinput setup failed ({e}), falling back to pynput")

    def _setup_pynput(self, reason: str) -> None:
        """Fallback to pynput if uinput isn't available or fails."""
        logger.warning(reason)
        try:
            from pynput.keyboard import Controller  # type: ignore

            self.ctrl = Controller()
            self.backend = "pynput"
        except Exception as e:
            # pynput raises on import when no display server is reachable
            self.backend = "none"
            logger.warning("pynput not available (%s); keystrokes will only be logged.", e)

    # ------------------------------------------------------------------
    def _to_uinput_code(self, name: str) -> Optional[tuple[int, int]]:
        """Convert a friendly key name into a uinput event code."""
        try:
            import uinput  # type: ignore
        except ImportError:
            return None

        if not name:
            return None
        name = name.lower()
        if len(name) == 1 and (name.isalpha() or name.isdigit()):
            return getattr(uinput, f"KEY_{name.upper()}", None)
        if name in self._SPECIAL_KEYS:
            const_name, _ = self._SPECIAL_KEYS[name]
            return getattr(uinput, const_name, None)
        return None

    def _to_pynput_key(self, name: str):
        """Convert a friendly key name into a pynput key representation."""
        if not name:
            return None
        try:
            from pynput.keyboard import Key  # type: ignore
        except Exception:
            return None
        name = name.lower()
        if len(name) == 1 and name.isprintable():
            return name
        if name in self._SPECIAL_KEYS:
            _, pynput_name = self._SPECIAL_KEYS[name]
            return getattr(Key, pynput_name, None)
        return None

    # — public —
    def press(self, symbol: Union[Symbol, str]) -> None:
        """Click the key for ``symbol`` (down then up)."""
        if not self.send_enabled:
            return
        key_name = symbol.key_name if isinstance(symbol, Symbol) else str(symbol)
        if self.backend == "uinput":
            code = self._to_uinput_code(key_name)
            if code is None:
                logger.debug("No uinput code for key '%s'", key_name)
                return
            self.dev.emit_click(code)
        elif self.backend == "pynput":
            key = self._to_pynput_key(key_name)
            if key is None:
                logger.debug("No pynput key for key '%s'", key_name)
                return
            self.ctrl.press(key)
            self.ctrl.release(key)
        else:
            logger.info("[press] %s", key_name)

    # ------------------------------------------------------------------
    def set_send_enabled(self, enabled: bool) -> None:
        """Enable or disable key event sending.

        When ``enabled`` is ``False`` :meth:`press` becomes a no-op.
        """
        self.send_enabled = bool(enabled)


__all__ = ["KeySender"]
