"""Request handling shared by every entity controller.

One EntityRequestHandler serves one entity kind. Each call walks the same
states - validate input, resolve the identifier, run the repository
operation, map the result - and classifies the result into one Outcome.
Nothing raised inside a call escapes it: unexpected failures become an
internal-error result whose body carries only a fixed message.

Every step writes one log record through LoggerService, tagged with a
context of the form "<Resource>Controller.<Action>":
    info   request.attempted   on entry
    warn   request.invalid     bad-request exits
    warn   request.not_found   not-found exits
    error  request.failed      internal-error exits (with full detail)
    info   request.succeeded   success exits
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ValidationError
from starlette import status

from core.logger import LoggerService
from core.wide_event import set_wide_event_fields
from mappers.entity_mapper import EntityMapper
from repositories.base_repository import EntityRepository
from schemas import ErrorResponse, FieldError

INTERNAL_ERROR_MESSAGE = (
    "An unexpected error occurred. Please contact the administrator."
)

MIN_ENTITY_ID = 1

type Payload = bytes | str | dict[str, Any] | None


class Outcome(StrEnum):
    """The fixed set of responses a handler may produce."""

    SUCCESS_WITH_BODY = "success_with_body"
    SUCCESS_NO_BODY = "success_no_body"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class HandlerResult:
    """Transport-neutral result of one handler call."""

    outcome: Outcome
    status_code: int
    body: Any = None
    location: str | None = None


def _error_body(detail: str, errors: list[FieldError] | None = None) -> dict:
    return ErrorResponse(detail=detail, errors=errors).model_dump(exclude_none=True)


def _field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(
            field=".".join(str(part) for part in err["loc"]) or "body",
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def _is_absent(payload: Payload) -> bool:
    if payload is None:
        return True
    if isinstance(payload, bytes | str):
        return not payload.strip()
    return False


class EntityRequestHandler:
    """Validates, resolves, executes and classifies CRUD requests for one entity.

    Construct one per request: the repository is bound to the request's
    database session.
    """

    def __init__(
        self,
        *,
        resource: str,
        repository: EntityRepository,
        mapper: EntityMapper,
        create_schema: type[BaseModel],
        update_schema: type[BaseModel],
        logger: LoggerService | None = None,
    ):
        self.resource = resource
        self.controller = f"{resource.capitalize()}Controller"
        self.repository = repository
        self.mapper = mapper
        self.create_schema = create_schema
        self.update_schema = update_schema
        self._log = logger or LoggerService(__name__)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_all(self) -> HandlerResult:
        context = self._begin("GetAll")
        try:
            entities = await self.repository.find_all()
            body = self.mapper.to_read_list(entities)
        except Exception as exc:
            return self._internal_error(context, f"listing failed: {exc}", exc=exc)

        self._log.info("request.succeeded", context=context, count=len(body))
        return self._finish(HandlerResult(Outcome.SUCCESS_WITH_BODY, 200, body))

    async def get(self, entity_id: int) -> HandlerResult:
        context = self._begin("GetById", entity_id=entity_id)
        try:
            entity = await self.repository.find_by_id(entity_id)
            if entity is None:
                return self._not_found(context, entity_id)
            body = self.mapper.to_read(entity)
        except Exception as exc:
            return self._internal_error(
                context, f"lookup of id={entity_id} failed: {exc}", exc=exc
            )

        self._log.info("request.succeeded", context=context, entity_id=entity_id)
        return self._finish(HandlerResult(Outcome.SUCCESS_WITH_BODY, 200, body))

    async def create(self, payload: Payload) -> HandlerResult:
        context = self._begin("Create")
        if _is_absent(payload):
            return self._bad_request(context, "Request body is required.")

        try:
            dto = self._parse(self.create_schema, payload)
        except ValidationError as exc:
            return self._bad_request(
                context, "Request body failed validation.", _field_errors(exc)
            )

        try:
            entity = self.mapper.from_create(dto)
            if not await self.repository.create(entity):
                return self._internal_error(context, "create was rejected by the store")
            body = self.mapper.to_read(entity)
        except Exception as exc:
            return self._internal_error(context, f"create failed: {exc}", exc=exc)

        self._log.info("request.succeeded", context=context, entity_id=body.id)
        return self._finish(
            HandlerResult(
                Outcome.SUCCESS_WITH_BODY,
                status.HTTP_201_CREATED,
                body,
                location=f"/api/{self.resource}/{body.id}",
            )
        )

    async def update(self, entity_id: int, payload: Payload) -> HandlerResult:
        context = self._begin("Update", entity_id=entity_id)
        if entity_id < MIN_ENTITY_ID:
            return self._bad_request(context, f"Identifier must be >= {MIN_ENTITY_ID}.")
        if _is_absent(payload):
            return self._bad_request(context, "Request body is required.")

        try:
            dto = self._parse(self.update_schema, payload)
        except ValidationError as exc:
            return self._bad_request(
                context, "Request body failed validation.", _field_errors(exc)
            )

        if dto.id != entity_id:
            return self._bad_request(
                context,
                "Identifier in the path does not match the identifier in the body.",
                body_id=dto.id,
            )

        try:
            if not await self.repository.exists(entity_id):
                return self._not_found(context, entity_id)
            entity = self.mapper.from_update(dto)
            if not await self.repository.update(entity):
                return self._internal_error(
                    context, f"update of id={entity_id} was rejected by the store"
                )
        except Exception as exc:
            return self._internal_error(
                context, f"update of id={entity_id} failed: {exc}", exc=exc
            )

        self._log.info("request.succeeded", context=context, entity_id=entity_id)
        return self._finish(HandlerResult(Outcome.SUCCESS_NO_BODY, 204))

    async def delete(self, entity_id: int) -> HandlerResult:
        context = self._begin("Delete", entity_id=entity_id)
        if entity_id < MIN_ENTITY_ID:
            return self._bad_request(context, f"Identifier must be >= {MIN_ENTITY_ID}.")

        try:
            if not await self.repository.exists(entity_id):
                return self._not_found(context, entity_id)
            entity = await self.repository.find_by_id(entity_id)
            if entity is None:
                # Removed by a concurrent request after the existence check
                return self._not_found(context, entity_id)
            if not await self.repository.delete(entity):
                return self._internal_error(
                    context, f"delete of id={entity_id} was rejected by the store"
                )
        except Exception as exc:
            return self._internal_error(
                context, f"delete of id={entity_id} failed: {exc}", exc=exc
            )

        self._log.info("request.succeeded", context=context, entity_id=entity_id)
        return self._finish(HandlerResult(Outcome.SUCCESS_NO_BODY, 204))

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _begin(self, action: str, **fields: Any) -> str:
        context = f"{self.controller}.{action}"
        set_wide_event_fields(entity=self.resource, action=action, **fields)
        self._log.info("request.attempted", context=context, **fields)
        return context

    @staticmethod
    def _parse(schema: type[BaseModel], payload: Payload) -> BaseModel:
        if isinstance(payload, bytes | str):
            return schema.model_validate_json(payload)
        return schema.model_validate(payload)

    def _bad_request(
        self,
        context: str,
        detail: str,
        errors: list[FieldError] | None = None,
        **fields: Any,
    ) -> HandlerResult:
        self._log.warn(
            "request.invalid",
            context=context,
            reason=detail,
            error_count=len(errors) if errors else 0,
            **fields,
        )
        return self._finish(
            HandlerResult(Outcome.BAD_REQUEST, 400, _error_body(detail, errors))
        )

    def _not_found(self, context: str, entity_id: int) -> HandlerResult:
        self._log.warn("request.not_found", context=context, entity_id=entity_id)
        return self._finish(
            HandlerResult(
                Outcome.NOT_FOUND,
                404,
                _error_body(f"No {self.resource} record with id {entity_id}."),
            )
        )

    def _internal_error(
        self, context: str, detail: str, *, exc: Exception | None = None
    ) -> HandlerResult:
        self._log.error(
            "request.failed",
            context=context,
            error=detail,
            error_type=type(exc).__name__ if exc else None,
            exc_info=exc,
        )
        return self._finish(
            HandlerResult(
                Outcome.INTERNAL_ERROR, 500, _error_body(INTERNAL_ERROR_MESSAGE)
            )
        )

    @staticmethod
    def _finish(result: HandlerResult) -> HandlerResult:
        set_wide_event_fields(outcome=result.outcome.value)
        return result
