"""Publisher endpoints under /api/publishers."""

from mappers import PUBLISHER_MAPPER
from repositories.publisher_repository import PublisherRepository
from routes.entity_routes import build_entity_router
from schemas import PublisherCreate, PublisherRead, PublisherUpdate

router = build_entity_router(
    resource="publishers",
    repository_class=PublisherRepository,
    mapper=PUBLISHER_MAPPER,
    create_schema=PublisherCreate,
    update_schema=PublisherUpdate,
    read_schema=PublisherRead,
)
