"""
Repository facades: generic (type per call) and strongly typed (type fixed),
each in synchronous and asyncio flavours.
"""

from simplerepo.repository.generic import Repository
from simplerepo.repository.generic_async import AsyncRepository
from simplerepo.repository.typed import AsyncTypedRepository, TypedRepository

__all__ = [
    "Repository",
    "AsyncRepository",
    "TypedRepository",
    "AsyncTypedRepository",
]
