"""Author endpoints under /api/authors."""

from mappers import AUTHOR_MAPPER
from repositories.author_repository import AuthorRepository
from routes.entity_routes import build_entity_router
from schemas import AuthorCreate, AuthorRead, AuthorUpdate

router = build_entity_router(
    resource="authors",
    repository_class=AuthorRepository,
    mapper=AUTHOR_MAPPER,
    create_schema=AuthorCreate,
    update_schema=AuthorUpdate,
    read_schema=AuthorRead,
)
