"""API route modules."""

from routes.authors_routes import router as authors_router
from routes.books_routes import router as books_router
from routes.health_routes import router as health_router
from routes.publishers_routes import router as publishers_router

__all__ = [
    "authors_router",
    "books_router",
    "health_router",
    "publishers_router",
]
