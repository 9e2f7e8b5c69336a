"""Book endpoints under /api/books.

A book's author_id and publisher_id are set on create only; PUT replaces
the descriptive fields and leaves both references unchanged.
"""

from mappers import BOOK_MAPPER
from repositories.book_repository import BookRepository
from routes.entity_routes import build_entity_router
from schemas import BookCreate, BookRead, BookUpdate

router = build_entity_router(
    resource="books",
    repository_class=BookRepository,
    mapper=BOOK_MAPPER,
    create_schema=BookCreate,
    update_schema=BookUpdate,
    read_schema=BookRead,
)
