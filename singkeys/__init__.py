"""Singkeys package: turn sung pitches into key presses."""

from .analysis_loop import AnalysisLoop
from .frame_buffer import AudioFrameBuffer
from .key_state import ActionKind, KeyAction, KeyEventStateMachine, KeyState
from .pitch_detector import PitchEstimate, PitchEstimator
from .pitch_map import PITCH_TABLE, Symbol, classify

__all__ = [
    "AnalysisLoop",
    "AudioFrameBuffer",
    "ActionKind",
    "KeyAction",
    "KeyEventStateMachine",
    "KeyState",
    "PitchEstimate",
    "PitchEstimator",
    "PITCH_TABLE",
    "Symbol",
    "classify",
]
