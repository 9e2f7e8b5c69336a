"""Publisher repository for database operations."""

from models import Publisher
from repositories.base_repository import EntityRepository


class PublisherRepository(EntityRepository[Publisher]):
    """Repository for Publisher database operations."""

    model = Publisher
    updatable_fields = ("name", "country")
