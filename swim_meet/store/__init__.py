"""
Conversation and response storage.
"""

from .base import Store
from .memory import MemoryStore
from .json_file import JsonFileStore

__all__ = ["Store", "MemoryStore", "JsonFileStore"]
