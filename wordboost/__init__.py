"""
WordBoost - vocabulary practice engine.

SM-2 spaced repetition with a pairing round and a flip-card drill per batch
of due words.
"""
__version__ = "0.1.0"
