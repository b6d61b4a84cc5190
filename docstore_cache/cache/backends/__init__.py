"""
docstore-cache — Document Store Backends

Exports available backend implementations.

The MongoDB backend is lazy-loaded via factory.py so pymongo is only imported
when it is selected.
"""

from .memory import MemoryCollection, MemoryDatabase

__all__ = [
    "MemoryCollection",
    "MemoryDatabase",
]
