"""Data models for an OpenAPI 3 document under construction.

The builder DSL produces these values; the document serializes them.
"""

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict

from openapi3_builder.schema.extractor import schema_ref


class Info(BaseModel):
    """Document metadata."""

    title: str = ""
    version: str = ""


class MediaTypeBinding(BaseModel):
    """A media type bound to the schema of a Python type.

    Only the type and its schema name are kept; the schema body is
    materialized later when components are computed.
    """

    model_config = ConfigDict(frozen=True)

    media_type: str
    model: Any
    schema_name: str

    @property
    def ref(self) -> str:
        return schema_ref(self.schema_name)

    def as_dict(self) -> dict[str, Any]:
        return {"schema": {"$ref": self.ref}}


class Response(BaseModel):
    """A response for a single status code."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    content: dict[str, MediaTypeBinding] = {}


class RequestBody(BaseModel):
    """Request body content keyed by media type."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    content: dict[str, MediaTypeBinding] = {}


class Operation(BaseModel):
    """One HTTP method on one path."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    operation_id: str = ""
    responses: dict[str, Response] = {}  # {status_code: Response}
    request_body: RequestBody | None = None

    def response_bindings(self) -> Iterator[MediaTypeBinding]:
        for response in self.responses.values():
            yield from response.content.values()

    def request_bindings(self) -> Iterator[MediaTypeBinding]:
        if self.request_body is not None:
            yield from self.request_body.content.values()


class HttpMethod(str, Enum):
    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"


class MethodOperation(BaseModel):
    """An operation tagged with the HTTP method it is registered under."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    operation: Operation


class PathTable:
    """Operations keyed by path template, then by HTTP method.

    Registering a method on an existing path adds it next to the other
    methods; registering the same method again replaces that operation.
    """

    def __init__(self):
        self._paths: dict[str, dict[HttpMethod, Operation]] = {}

    def register(self, path: str, entry: MethodOperation) -> None:
        methods = self._paths.setdefault(path, {})
        methods[entry.method] = entry.operation

    def operations(self) -> Iterator[Operation]:
        """Every operation, in path then method registration order."""
        for methods in self._paths.values():
            yield from methods.values()

    def items(self):
        return self._paths.items()

    def __getitem__(self, path: str) -> dict[HttpMethod, Operation]:
        return self._paths[path]

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __len__(self) -> int:
        return len(self._paths)
