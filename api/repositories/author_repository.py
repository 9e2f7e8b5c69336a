"""Author repository for database operations."""

from models import Author
from repositories.base_repository import EntityRepository


class AuthorRepository(EntityRepository[Author]):
    """Repository for Author database operations."""

    model = Author
    updatable_fields = ("first_name", "last_name", "bio")
