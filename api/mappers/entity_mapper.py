"""Declarative mapping between persisted entities and their DTOs.

A mapper is declared once per entity at import time and is then used as a
pure function: no I/O, no validation (bodies are validated before mapping).
Declarations are checked against the entity's mapped columns when the mapper
is built, so a missing or misspelled field fails at startup instead of in a
request.
"""

from collections.abc import Iterable

from pydantic import BaseModel
from sqlalchemy import inspect

from core.database import Base


class MappingConfigurationError(Exception):
    """Raised when a mapper declaration does not match its entity or DTOs."""


class EntityMapper[E: Base, R: BaseModel]:
    """Maps one entity type to its read DTO and from its create/update DTOs.

    Args:
        entity_type: SQLAlchemy model class.
        read_schema: Read DTO, built from entity attributes.
        create_schema: Create DTO; every field is copied onto a new entity.
        update_schema: Update DTO; must carry ``id``.
        update_fields: Fields copied from the update DTO. Defaults to every
            update DTO field except ``id``.
    """

    def __init__(
        self,
        entity_type: type[E],
        read_schema: type[R],
        create_schema: type[BaseModel],
        update_schema: type[BaseModel],
        update_fields: Iterable[str] | None = None,
    ):
        self.entity_type = entity_type
        self.read_schema = read_schema
        self.create_fields = tuple(create_schema.model_fields)
        if update_fields is None:
            update_fields = (f for f in update_schema.model_fields if f != "id")
        self.update_fields = tuple(update_fields)

        self._check_declaration(read_schema, create_schema, update_schema)

    def _check_declaration(
        self,
        read_schema: type[BaseModel],
        create_schema: type[BaseModel],
        update_schema: type[BaseModel],
    ) -> None:
        entity_name = self.entity_type.__name__
        columns = set(inspect(self.entity_type).columns.keys())

        if "id" not in update_schema.model_fields:
            raise MappingConfigurationError(
                f"{update_schema.__name__} must declare 'id' to map onto {entity_name}"
            )

        checks = (
            (read_schema.__name__, tuple(read_schema.model_fields)),
            (create_schema.__name__, self.create_fields),
            (update_schema.__name__, self.update_fields),
        )
        for schema_name, fields in checks:
            missing = [f for f in fields if f not in columns]
            if missing:
                raise MappingConfigurationError(
                    f"{schema_name} fields {missing} have no column on {entity_name}"
                )

        unknown = [f for f in self.update_fields if f not in update_schema.model_fields]
        if unknown:
            raise MappingConfigurationError(
                f"update_fields {unknown} are not declared on {update_schema.__name__}"
            )

    def to_read(self, entity: E) -> R:
        return self.read_schema.model_validate(entity)

    def to_read_list(self, entities: Iterable[E]) -> list[R]:
        return [self.to_read(entity) for entity in entities]

    def from_create(self, dto: BaseModel) -> E:
        """Build a new, unsaved entity. The id stays unset until insert."""
        values = {field: getattr(dto, field) for field in self.create_fields}
        return self.entity_type(**values)

    def from_update(self, dto: BaseModel) -> E:
        """Build a transient entity carrying the DTO's id and replacement fields."""
        values = {field: getattr(dto, field) for field in self.update_fields}
        return self.entity_type(id=dto.id, **values)
