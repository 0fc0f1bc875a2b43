"""
Database adapters.

`base.DatabaseAdapter` is the contract the resource controller depends on;
`memory` and `postgres` are the shipped implementations.
"""

from .base import DatabaseAdapter
from .memory import MemoryDatabaseAdapter
from .postgres import PostgresDatabaseAdapter

__all__ = ["DatabaseAdapter", "MemoryDatabaseAdapter", "PostgresDatabaseAdapter"]
