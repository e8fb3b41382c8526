"""Content repository implementations.

- InMemoryContentRepository: dictionary-backed, for tests and scripting
- SqlAlchemyContentRepository: relational database via SQLAlchemy 2.0
"""

from .memory import InMemoryContentRepository
from .sql import SqlAlchemyContentRepository

__all__ = ["InMemoryContentRepository", "SqlAlchemyContentRepository"]
