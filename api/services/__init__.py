"""Service layer for request handling.

Routes stay thin and HTTP-focused; services own the request flow.

Layer hierarchy:
    Routes (HTTP) -> Services (request flow) -> Repositories (Database)
                                             -> Mappers (entity <-> DTO)

Services should:
- Validate request bodies and identifiers
- Orchestrate calls to repositories and mappers
- Return transport-neutral results (HandlerResult), not Response objects

Services should NOT:
- Directly execute SQL queries (use repositories)
- Let exceptions escape to the HTTP layer
"""

from services.entity_handler import (
    INTERNAL_ERROR_MESSAGE,
    EntityRequestHandler,
    HandlerResult,
    Outcome,
)

__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "EntityRequestHandler",
    "HandlerResult",
    "Outcome",
]
