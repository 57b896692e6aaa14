"""Persistence collaborators for books."""

from .interfaces import IBookRepository
from .json_repository import JsonBookRepository

__all__ = [
    "IBookRepository",
    "JsonBookRepository",
]
