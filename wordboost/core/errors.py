"""
Practice engine errors.

- InvalidArgumentError: malformed scheduler or config input
- PersistenceError: the word store failed to acknowledge a save
- EmptyUndoError: undo requested with nothing to undo
- InvalidTransitionError: a command that does not apply to the current state
"""
from typing import Dict, Optional


class PracticeError(Exception):
    """Base exception for all practice engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, object]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class InvalidArgumentError(PracticeError):
    """Raised when an input violates its contract (negative quality, interval, ...)."""

    def __init__(self, message: str, field: Optional[str] = None, value: object = None):
        details: Dict[str, object] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.field = field
        self.value = value


class PersistenceError(PracticeError):
    """Raised when a word could not be saved."""

    def __init__(self, word_id: str, reason: str = "save not acknowledged"):
        super().__init__(f"Failed to save word {word_id}: {reason}", {"word_id": word_id})
        self.word_id = word_id
        self.reason = reason


class EmptyUndoError(PracticeError):
    """Raised when the undo stack has nothing to pop."""

    def __init__(self):
        super().__init__("No action to undo.")


class InvalidTransitionError(PracticeError):
    """Raised when a state machine is asked for a transition it does not allow."""

    def __init__(self, state: str, action: str):
        super().__init__(
            f"Cannot {action} while in {state}",
            {"state": state, "action": action},
        )
        self.state = state
        self.action = action
