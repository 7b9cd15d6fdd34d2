"""
WordBoost Core Components.
- Word: vocabulary entry with SM-2 state
- UndoStack: reversible answer history
- PracticeConfig: session configuration
- Collaborator protocols: word source, persistence, speech
"""
from .word import Word, WordStatus, MIN_EASINESS, DEFAULT_EASINESS
from .errors import (
    PracticeError,
    InvalidArgumentError,
    PersistenceError,
    EmptyUndoError,
    InvalidTransitionError,
)
from .undo import UndoStack, UndoEntry, AnswerSource
from .config import PracticeConfig, load_config, default_config
from .collaborators import DueWordSource, WordPersistence, SpeechCollaborator

__all__ = [
    # Model
    "Word",
    "WordStatus",
    "MIN_EASINESS",
    "DEFAULT_EASINESS",
    # Errors
    "PracticeError",
    "InvalidArgumentError",
    "PersistenceError",
    "EmptyUndoError",
    "InvalidTransitionError",
    # Undo
    "UndoStack",
    "UndoEntry",
    "AnswerSource",
    # Config
    "PracticeConfig",
    "load_config",
    "default_config",
    # Collaborators
    "DueWordSource",
    "WordPersistence",
    "SpeechCollaborator",
]
