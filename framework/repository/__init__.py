"""
Repository pattern: data access abstraction, decouples service layer from the storage backend.
"""

from .base import Repository, SqlRepository
from .manager import InMemoryRepositoryManager, RepositoryManager, SqlRepositoryManager
from .unit_of_work import InMemoryUnitOfWork, SqlUnitOfWork, UnitOfWork

__all__ = [
    "Repository",
    "SqlRepository",
    "RepositoryManager",
    "SqlRepositoryManager",
    "InMemoryRepositoryManager",
    "UnitOfWork",
    "SqlUnitOfWork",
    "InMemoryUnitOfWork",
]
