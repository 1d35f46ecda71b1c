"""Journal module for mrtune provenance tracking."""

from .events import CommandName, EventType, JournalEvent
from .journal import DEFAULT_JOURNAL_DIR, Journal, hash_inputs

__all__ = [
    "CommandName",
    "EventType",
    "Journal",
    "JournalEvent",
    "DEFAULT_JOURNAL_DIR",
    "hash_inputs",
]
