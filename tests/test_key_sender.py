"""Tests for :class:`singkeys.key_sender.KeySender`."""

import logging
import sys
import types
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from singkeys import key_sender  # noqa: E402
from singkeys.key_sender import KeySender  # noqa: E402
from singkeys.pitch_map import Symbol  # noqa: E402


def _log_only_sender() -> KeySender:
    sender = KeySender.__new__(KeySender)
    sender.send_enabled = True
    sender.backend = "none"
    sender.dev = None
    sender.ctrl = None
    return sender


class DummyController:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def press(self, key) -> None:
        self.events.append(("press", key))

    def release(self, key) -> None:
        self.events.append(("release", key))


class DummyDevice:
    def __init__(self) -> None:
        self.clicks: list[object] = []

    def emit_click(self, code) -> None:
        self.clicks.append(code)


def test_log_only_backend_logs_press(caplog: pytest.LogCaptureFixture) -> None:
    sender = _log_only_sender()
    with caplog.at_level(logging.INFO, logger="singkeys.key_sender"):
        sender.press(Symbol.LEFT)
    assert "[press] left" in caplog.text


def test_send_disabled_is_silent(caplog: pytest.LogCaptureFixture) -> None:
    sender = _log_only_sender()
    sender.set_send_enabled(False)
    with caplog.at_level(logging.INFO, logger="singkeys.key_sender"):
        sender.press(Symbol.LEFT)
    assert "[press]" not in caplog.text


def test_pynput_backend_clicks(monkeypatch: pytest.MonkeyPatch) -> None:
    key_mod = types.SimpleNamespace(Key=types.SimpleNamespace(backspace="BKSP"))
    monkeypatch.setitem(sys.modules, "pynput", types.SimpleNamespace(keyboard=key_mod))
    monkeypatch.setitem(sys.modules, "pynput.keyboard", key_mod)
    sender = _log_only_sender()
    sender.backend = "pynput"
    sender.ctrl = DummyController()

    sender.press(Symbol.BACKSPACE)
    sender.press(Symbol.SYM_X)
    assert sender.ctrl.events == [
        ("press", "BKSP"),
        ("release", "BKSP"),
        ("press", "x"),
        ("release", "x"),
    ]


def test_uinput_backend_clicks(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_uinput = types.SimpleNamespace(KEY_ENTER=(1, 28), KEY_S=(1, 31))
    monkeypatch.setitem(sys.modules, "uinput", fake_uinput)
    sender = _log_only_sender()
    sender.backend = "uinput"
    sender.dev = DummyDevice()

    sender.press(Symbol.CONFIRM)
    sender.press(Symbol.SYM_S)
    assert sender.dev.clicks == [(1, 28), (1, 31)]


def test_uinput_permission_error_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    def denied(*_, **__):
        raise PermissionError("denied")

    fake_uinput = types.SimpleNamespace(Device=denied, KEY_LEFT=(1, 105))
    monkeypatch.setitem(sys.modules, "uinput", fake_uinput)
    monkeypatch.setitem(sys.modules, "pynput", None)
    monkeypatch.setitem(sys.modules, "pynput.keyboard", None)

    sender = key_sender.KeySender()
    assert sender.backend == "none"
