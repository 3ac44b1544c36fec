"""OpenAPI 3 document aggregate and its serialization."""

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

import yaml

from openapi3_builder.document.components import compute_components
from openapi3_builder.document.models import Info, Operation, PathTable, RequestBody, Response
from openapi3_builder.schema.extractor import SchemaExtractor

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"
OUTPUT_FORMATS = ("json", "yaml")


class Document:
    """Top-level OpenAPI document: metadata, paths and derived components."""

    def __init__(
        self,
        info: Info | None = None,
        paths: PathTable | None = None,
        extractor: SchemaExtractor | None = None,
        openapi: str = OPENAPI_VERSION,
    ):
        self.openapi = openapi
        self.info = info or Info()
        self.paths = paths if paths is not None else PathTable()
        self.extractor = extractor or SchemaExtractor()

    @property
    def components(self) -> dict[str, Any]:
        """Component schemas, recomputed from the current paths."""
        return {"schemas": compute_components(self.paths, self.extractor)}

    def as_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible tree; empty values are omitted."""
        paths = {
            path: {method.value: _operation(operation) for method, operation in methods.items()}
            for path, methods in self.paths.items()
        }
        return _compact({
            "openapi": self.openapi,
            "info": _compact(self.info.model_dump()),
            "paths": paths,
            "components": _compact(self.components),
        })

    def as_json(self, indent: int | None = None) -> str:
        return json.dumps(self.as_dict(), indent=indent, ensure_ascii=False)

    def as_yaml(self) -> str:
        return yaml.safe_dump(self.as_dict(), sort_keys=False, allow_unicode=True)

    def as_file(self, fmt: str = "json") -> Path:
        """Write the document to a new temporary file and return its path.

        The file is not removed; disposing of it is left to the caller.
        """
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported format {fmt!r}, expected one of {OUTPUT_FORMATS}")

        text = self.as_json(indent=2) if fmt == "json" else self.as_yaml()
        with tempfile.NamedTemporaryFile(
            "w", prefix="openapi-", suffix=f".{fmt}", delete=False, encoding="utf-8"
        ) as f:
            f.write(text)
        logger.info("Wrote OpenAPI document to %s", f.name)
        return Path(f.name)


def _operation(operation: Operation) -> dict[str, Any]:
    responses = {code: _response(response) for code, response in operation.responses.items()}
    return _compact({
        "description": operation.description,
        "operationId": operation.operation_id,
        "responses": responses,
        "requestBody": _request_body(operation.request_body),
    })


def _response(response: Response) -> dict[str, Any]:
    content = {media_type: binding.as_dict() for media_type, binding in response.content.items()}
    return _compact({"description": response.description, "content": content})


def _request_body(body: RequestBody | None) -> dict[str, Any] | None:
    if body is None:
        return None
    # Media types sit next to the description, not under a "content" key.
    result: dict[str, Any] = {"description": body.description}
    for media_type, binding in body.content.items():
        result[media_type] = binding.as_dict()
    return _compact(result)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop None, empty strings and empty mappings."""
    return {k: v for k, v in data.items() if v is not None and v != "" and v != {}}
