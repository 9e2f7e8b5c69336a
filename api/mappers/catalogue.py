"""Mapper declarations for the bookstore catalogue entities."""

from mappers.entity_mapper import EntityMapper
from models import Author, Book, Publisher
from schemas import (
    AuthorCreate,
    AuthorRead,
    AuthorUpdate,
    BookCreate,
    BookRead,
    BookUpdate,
    PublisherCreate,
    PublisherRead,
    PublisherUpdate,
)

AUTHOR_MAPPER = EntityMapper(Author, AuthorRead, AuthorCreate, AuthorUpdate)

PUBLISHER_MAPPER = EntityMapper(
    Publisher, PublisherRead, PublisherCreate, PublisherUpdate
)

BOOK_MAPPER = EntityMapper(Book, BookRead, BookCreate, BookUpdate)
