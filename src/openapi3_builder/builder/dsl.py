"""Builder DSL for OpenAPI 3 documents.

Every section is configured by passing a function that receives a
mutable builder::

    def configure(doc):
        doc.info(lambda info: info.set(title="Users", version="1.0"))

        def paths(p):
            def list_users(op):
                op.operation_id = "listUsers"
                op.code("200", lambda r: r.response("application/json", User))

            p.get("/users", list_users)

        doc.paths(paths)

    document = openapi3(configure)
"""

from typing import Any, Callable

from openapi3_builder.document.models import (
    HttpMethod,
    Info,
    MediaTypeBinding,
    MethodOperation,
    Operation,
    PathTable,
    RequestBody,
    Response,
)
from openapi3_builder.document.openapi import Document
from openapi3_builder.schema.extractor import SchemaExtractor


class _ContentBuilder:
    def __init__(self, extractor: SchemaExtractor, description: str = ""):
        self.extractor = extractor
        self.description = description
        self.content: dict[str, MediaTypeBinding] = {}

    def _bind(self, media_type: str, tp: Any) -> None:
        self.extractor.check(tp)
        self.content[media_type] = MediaTypeBinding(
            media_type=media_type,
            model=tp,
            schema_name=self.extractor.schema_name(tp),
        )


class ResponseBuilder(_ContentBuilder):
    """Builds the response for one status code."""

    def response(self, media_type: str, tp: Any) -> "ResponseBuilder":
        """Bind ``tp`` under ``media_type``, replacing any earlier binding."""
        self._bind(media_type, tp)
        return self

    def build(self) -> Response:
        return Response(description=self.description, content=dict(self.content))


class RequestBodyBuilder(_ContentBuilder):
    """Builds an operation's request body."""

    def request(self, media_type: str, tp: Any) -> "RequestBodyBuilder":
        self._bind(media_type, tp)
        return self

    def build(self) -> RequestBody:
        return RequestBody(description=self.description, content=dict(self.content))


class OperationBuilder:
    """Builds one operation: responses by status code and an optional request body."""

    def __init__(self, extractor: SchemaExtractor, description: str = "", operation_id: str = ""):
        self.extractor = extractor
        self.description = description
        self.operation_id = operation_id
        self.responses: dict[str, Response] = {}
        self._request_body: RequestBodyBuilder | None = None

    def code(self, code: str, configure: Callable[[ResponseBuilder], Any]) -> "OperationBuilder":
        """Create or replace the response for ``code``."""
        builder = ResponseBuilder(self.extractor)
        configure(builder)
        self.responses[str(code)] = builder.build()
        return self

    def request_body(self, configure: Callable[[RequestBodyBuilder], Any]) -> "OperationBuilder":
        """Set the request body. Only the first call has any effect."""
        if self._request_body is None:
            self._request_body = RequestBodyBuilder(self.extractor)
            configure(self._request_body)
        return self

    def build(self) -> Operation:
        return Operation(
            description=self.description,
            operation_id=self.operation_id,
            responses=dict(self.responses),
            request_body=self._request_body.build() if self._request_body is not None else None,
        )


class PathsBuilder:
    """Registers operations on path templates, one method per HTTP verb."""

    def __init__(self, table: PathTable, extractor: SchemaExtractor):
        self.table = table
        self.extractor = extractor

    def operation(
        self, method: HttpMethod | str, path: str, configure: Callable[[OperationBuilder], Any]
    ) -> "PathsBuilder":
        builder = OperationBuilder(self.extractor)
        configure(builder)
        entry = MethodOperation(method=HttpMethod(method.lower()), operation=builder.build())
        self.table.register(path, entry)
        return self

    def get(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.GET, path, configure)

    def put(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.PUT, path, configure)

    def post(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.POST, path, configure)

    def delete(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.DELETE, path, configure)

    def patch(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.PATCH, path, configure)

    def head(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.HEAD, path, configure)

    def options(self, path: str, configure: Callable[[OperationBuilder], Any]) -> "PathsBuilder":
        return self.operation(HttpMethod.OPTIONS, path, configure)


class InfoBuilder:
    def __init__(self, info: Info):
        self.title = info.title
        self.version = info.version

    def set(self, title: str | None = None, version: str | None = None) -> "InfoBuilder":
        if title is not None:
            self.title = title
        if version is not None:
            self.version = version
        return self

    def build(self) -> Info:
        return Info(title=self.title, version=self.version)


class DocumentBuilder:
    """Entry point of the DSL.

    Documents returned by ``build`` share this builder's path table, so
    paths registered afterwards show up the next time they are serialized.
    """

    def __init__(self, extractor: SchemaExtractor | None = None):
        self.extractor = extractor or SchemaExtractor()
        self.document = Document(extractor=self.extractor)

    def info(self, configure: Callable[[InfoBuilder], Any]) -> "DocumentBuilder":
        builder = InfoBuilder(self.document.info)
        configure(builder)
        self.document.info = builder.build()
        return self

    def paths(self, configure: Callable[[PathsBuilder], Any]) -> "DocumentBuilder":
        configure(PathsBuilder(self.document.paths, self.extractor))
        return self

    def build(self) -> Document:
        return self.document


def openapi3(
    configure: Callable[[DocumentBuilder], Any], extractor: SchemaExtractor | None = None
) -> Document:
    """Build a document by running ``configure`` on a fresh DocumentBuilder."""
    builder = DocumentBuilder(extractor=extractor)
    configure(builder)
    return builder.build()
