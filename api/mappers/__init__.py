"""Entity <-> DTO mapping layer."""

from mappers.catalogue import AUTHOR_MAPPER, BOOK_MAPPER, PUBLISHER_MAPPER
from mappers.entity_mapper import EntityMapper, MappingConfigurationError

__all__ = [
    "AUTHOR_MAPPER",
    "BOOK_MAPPER",
    "PUBLISHER_MAPPER",
    "EntityMapper",
    "MappingConfigurationError",
]
