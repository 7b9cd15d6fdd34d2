"""Practice modes for WordBoost."""
from .practice_session import PracticeSession, SessionPhase, SessionState, PhaseKind

__all__ = [
    "PracticeSession",
    "SessionPhase",
    "SessionState",
    "PhaseKind",
]
