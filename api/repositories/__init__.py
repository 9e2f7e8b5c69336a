"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping the request handler
focused on validation and outcome classification. Every entity repository
shares the EntityRepository contract:
- find_all / find_by_id / exists never raise for "not found"
- create / update / delete commit their own write and return a bool
"""

from repositories.author_repository import AuthorRepository
from repositories.base_repository import EntityRepository
from repositories.book_repository import BookRepository
from repositories.publisher_repository import PublisherRepository
from repositories.utils import log_slow_query

__all__ = [
    "AuthorRepository",
    "BookRepository",
    "EntityRepository",
    "PublisherRepository",
    "log_slow_query",
]
