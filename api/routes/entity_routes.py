"""CRUD endpoints shared by every catalogue entity.

Each entity gets the same five endpoints under /api/<resource>:

    GET    /api/<resource>             list every record
    GET    /api/<resource>/{entity_id} fetch one record
    POST   /api/<resource>             create (201 + Location)
    PUT    /api/<resource>/{entity_id} replace (204)
    DELETE /api/<resource>/{entity_id} remove (204)

Bodies are read raw and handed to EntityRequestHandler, so a missing or
malformed body is reported as a 400 with the shared error envelope.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.database import DbSession
from core.ratelimit import ENTITY_READ_LIMIT, ENTITY_WRITE_LIMIT, limiter
from mappers.entity_mapper import EntityMapper
from repositories.base_repository import EntityRepository
from schemas import ErrorResponse
from services.entity_handler import EntityRequestHandler, HandlerResult, Outcome

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Invalid identifier or body"},
    429: {"description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
}

_NOT_FOUND_RESPONSE: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "No record with this id"},
}


def to_response(result: HandlerResult) -> Response:
    """Render a handler result as an HTTP response."""
    if result.outcome is Outcome.SUCCESS_NO_BODY:
        return Response(status_code=result.status_code)

    headers = {"Location": result.location} if result.location else None
    return JSONResponse(
        status_code=result.status_code,
        content=jsonable_encoder(result.body),
        headers=headers,
    )


def _limited(func: Callable, name: str, limit: str) -> Callable:
    # slowapi keys limits by function name; closures must be told apart
    func.__name__ = name
    func.__qualname__ = name
    return limiter.limit(limit)(func)


def build_entity_router(
    *,
    resource: str,
    repository_class: type[EntityRepository],
    mapper: EntityMapper,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    read_schema: type[BaseModel],
) -> APIRouter:
    """Build the CRUD router for one entity kind."""
    router = APIRouter(prefix=f"/api/{resource}", tags=[resource])

    def get_handler(db: DbSession) -> EntityRequestHandler:
        return EntityRequestHandler(
            resource=resource,
            repository=repository_class(db),
            mapper=mapper,
            create_schema=create_schema,
            update_schema=update_schema,
        )

    Handler = Annotated[EntityRequestHandler, Depends(get_handler)]

    async def list_entities(request: Request, handler: Handler) -> Response:
        return to_response(await handler.list_all())

    async def get_entity(
        request: Request, entity_id: int, handler: Handler
    ) -> Response:
        return to_response(await handler.get(entity_id))

    async def create_entity(request: Request, handler: Handler) -> Response:
        return to_response(await handler.create(await request.body()))

    async def update_entity(
        request: Request, entity_id: int, handler: Handler
    ) -> Response:
        return to_response(await handler.update(entity_id, await request.body()))

    async def delete_entity(
        request: Request, entity_id: int, handler: Handler
    ) -> Response:
        return to_response(await handler.delete(entity_id))

    router.add_api_route(
        "",
        _limited(list_entities, f"list_{resource}", ENTITY_READ_LIMIT),
        methods=["GET"],
        response_model=list[read_schema],
        responses=_ERROR_RESPONSES,
        summary=f"List {resource}",
    )
    router.add_api_route(
        "/{entity_id}",
        _limited(get_entity, f"get_{resource}", ENTITY_READ_LIMIT),
        methods=["GET"],
        response_model=read_schema,
        responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
        summary=f"Get one of {resource}",
    )
    router.add_api_route(
        "",
        _limited(create_entity, f"create_{resource}", ENTITY_WRITE_LIMIT),
        methods=["POST"],
        status_code=201,
        response_model=read_schema,
        responses=_ERROR_RESPONSES,
        openapi_extra=_request_body_schema(create_schema),
        summary=f"Create one of {resource}",
    )
    router.add_api_route(
        "/{entity_id}",
        _limited(update_entity, f"update_{resource}", ENTITY_WRITE_LIMIT),
        methods=["PUT"],
        status_code=204,
        response_class=Response,
        responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
        openapi_extra=_request_body_schema(update_schema),
        summary=f"Replace one of {resource}",
    )
    router.add_api_route(
        "/{entity_id}",
        _limited(delete_entity, f"delete_{resource}", ENTITY_WRITE_LIMIT),
        methods=["DELETE"],
        status_code=204,
        response_class=Response,
        responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
        summary=f"Delete one of {resource}",
    )

    return router


def _request_body_schema(schema: type[BaseModel]) -> dict:
    """Document the body that the endpoint reads raw from the request."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema.model_json_schema()}},
        }
    }
