"""Collaborator implementations for running WordBoost without a backend."""
from .memory_store import InMemoryWordStore
from .speech import ConsoleSpeech

__all__ = ["InMemoryWordStore", "ConsoleSpeech"]
