"""Derives ``components.schemas`` from the operations in a path table.

The registry is never stored: it is recomputed from the current path
table every time a document is serialized.
"""

import logging
from typing import Any, Iterable

from openapi3_builder.document.models import MediaTypeBinding, PathTable
from openapi3_builder.schema.extractor import ExtractedSchema, SchemaExtractor

logger = logging.getLogger(__name__)


def compute_components(paths: PathTable, extractor: SchemaExtractor) -> dict[str, Any]:
    """Collect one schema per referenced type, keyed by schema name.

    Response schemas are collected first and request body schemas are
    merged over them, so on a name collision the request side wins.
    Within each pass a later type with an already-seen name overwrites
    the earlier one. Nested definitions are added last and never replace
    a schema that is bound directly.
    """
    operations = list(paths.operations())

    response_bindings = [b for operation in operations for b in operation.response_bindings()]
    request_bindings = [b for operation in operations for b in operation.request_bindings()]

    schemas, nested = _collect(response_bindings, extractor)
    request_schemas, request_nested = _collect(request_bindings, extractor)
    for name, body in request_schemas.items():
        if name in schemas and schemas[name] != body:
            logger.debug("Request schema %s replaces response schema of the same name", name)
        schemas[name] = body
    for definitions in (nested, request_nested):
        for name, body in definitions.items():
            schemas.setdefault(name, body)
    return schemas


def _collect(
    bindings: Iterable[MediaTypeBinding], extractor: SchemaExtractor
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Directly bound schemas and nested definitions, kept apart."""
    schemas: dict[str, Any] = {}
    nested: dict[str, Any] = {}
    # Extraction is pure, so each distinct type is extracted once per pass.
    extracted_by_type: dict[int, tuple[Any, ExtractedSchema]] = {}
    for binding in bindings:
        tp = binding.model
        cached = extracted_by_type.get(id(tp))
        if cached is not None and cached[0] is tp:
            extracted = cached[1]
        else:
            extracted = extractor.extract(tp)
            extracted_by_type[id(tp)] = (tp, extracted)

        if extracted.name in schemas and schemas[extracted.name] != extracted.body:
            logger.debug("Schema name collision on %s, keeping the later type", extracted.name)
        schemas[extracted.name] = extracted.body
        for def_name, def_body in extracted.definitions.items():
            nested.setdefault(def_name, def_body)
    return schemas, nested
