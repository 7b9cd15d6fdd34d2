"""
Console speech collaborator.
Prints what would be spoken, for terminals without a TTS engine.
"""
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConsoleSpeech:
    """Speech output written to the console."""

    def __init__(self, output: Optional[Callable[[str], None]] = None):
        self.output = output or print
        self.speaking: Optional[str] = None

    def speak(self, text: str):
        self.speaking = text
        self.output(f"🔊 {text}")

    def stop(self):
        if self.speaking is not None:
            logger.debug(f"Speech stopped: {self.speaking}")
        self.speaking = None
