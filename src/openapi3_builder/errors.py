"""Exceptions raised by openapi3-builder."""


class OpenApiBuilderError(Exception):
    """Base class for all library errors."""


class SchemaExtractionError(OpenApiBuilderError):
    """A type could not be introspected into a JSON Schema."""

    def __init__(self, tp: object, reason: str):
        self.tp = tp
        name = getattr(tp, "__name__", repr(tp))
        super().__init__(f"Cannot generate schema for {name}: {reason}")


class DocumentSourceError(OpenApiBuilderError):
    """A document source (file:attribute) could not be loaded."""
