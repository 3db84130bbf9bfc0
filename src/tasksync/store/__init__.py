"""
Local store implementations.

    - LocalStore: the interface the engine depends on
    - InMemoryStore: dict-backed, for tests and embedding
    - SQLiteStore: persistent store used by the server
"""

from tasksync.store.base import LocalStore
from tasksync.store.memory import InMemoryStore
from tasksync.store.sqlite import SQLiteStore

__all__ = [
    "LocalStore",
    "InMemoryStore",
    "SQLiteStore",
]
