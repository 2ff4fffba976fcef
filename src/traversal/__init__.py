"""
Resumable traversal: durable state, store backends and control channel.

The controller (src.traversal.controller) and the keyboard adapter
(src.traversal.keyboard) are imported from their modules directly.
"""

from src.traversal.state import SourceTag, StopReason, TraversalState
from src.traversal.store import (
    STATE_KEY,
    TraversalStore,
    MemoryTraversalStore,
    FileTraversalStore,
    SessionStorageTraversalStore,
)
from src.traversal.control import ControlCommand, ControlSignalChannel

__all__ = [
    "SourceTag",
    "StopReason",
    "TraversalState",
    "STATE_KEY",
    "TraversalStore",
    "MemoryTraversalStore",
    "FileTraversalStore",
    "SessionStorageTraversalStore",
    "ControlCommand",
    "ControlSignalChannel",
]
