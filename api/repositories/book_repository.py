"""Book repository for database operations."""

from models import Book
from repositories.base_repository import EntityRepository


class BookRepository(EntityRepository[Book]):
    """Repository for Book database operations.

    author_id and publisher_id are set on insert only and are not
    replaced by update().
    """

    model = Book
    updatable_fields = ("title", "year", "isbn", "summary", "image", "price")
