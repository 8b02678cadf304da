"""Database package: ORM models and the storage handle."""

from .database import Database
from . import models

__all__ = [
    "Database",
    "models",
]
