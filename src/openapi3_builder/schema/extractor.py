"""Type to JSON Schema extraction.

Turns a Python type into a named JSON Schema body suitable for
``components.schemas``. Schema generation is delegated to pydantic.
"""

import copy
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, get_args, get_type_hints

from pydantic import BaseModel, PydanticUndefinedAnnotation, PydanticUserError, TypeAdapter
from typing_extensions import is_typeddict

from openapi3_builder.errors import SchemaExtractionError

logger = logging.getLogger(__name__)

REF_PREFIX = "#/components/schemas/"
REF_TEMPLATE = REF_PREFIX + "{model}"

# Top-level keys some generators add that do not belong in a component body.
GENERATOR_METADATA_KEYS = ("id", "$id")
DEFINITIONS_KEY = "$defs"


def generate_schema(tp: Any) -> dict[str, Any]:
    """Produce the raw JSON Schema document for a type."""
    try:
        return TypeAdapter(tp).json_schema(ref_template=REF_TEMPLATE)
    except (PydanticUserError, PydanticUndefinedAnnotation) as e:
        raise SchemaExtractionError(tp, str(e)) from e


def schema_ref(name: str) -> str:
    """Return the ``$ref`` pointer for a component schema name."""
    return f"{REF_PREFIX}{name}"


def definition_name(tp: Any) -> str | None:
    """The key pydantic files ``tp`` under when it appears in ``$defs``.

    None when pydantic cannot describe the type or inlines it.
    """
    try:
        schema = TypeAdapter(list[tp]).json_schema(ref_template=REF_TEMPLATE)
    except (PydanticUserError, PydanticUndefinedAnnotation):
        return None
    ref = schema.get("items", {}).get("$ref", "")
    return ref[len(REF_PREFIX):] if ref.startswith(REF_PREFIX) else None


def referenced_types(tp: Any) -> list[type]:
    """Classes reachable from ``tp`` through fields and type arguments."""
    found: list[type] = []
    stack = [tp]
    while stack:
        current = stack.pop()
        stack.extend(get_args(current))
        if not isinstance(current, type) or current in found or current.__module__ == "builtins":
            continue
        found.append(current)
        if issubclass(current, BaseModel):
            stack.extend(f.annotation for f in current.model_fields.values())
        elif dataclasses.is_dataclass(current) or is_typeddict(current):
            try:
                stack.extend(get_type_hints(current).values())
            except (NameError, TypeError):
                logger.debug("Cannot resolve annotations of %s", current)
    return found


def _rename_refs(node: Any, renames: dict[str, str]) -> Any:
    if isinstance(node, dict):
        result = {}
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str) and value.startswith(REF_PREFIX):
                target = value[len(REF_PREFIX):]
                result[key] = schema_ref(renames.get(target, target))
            else:
                result[key] = _rename_refs(value, renames)
        return result
    if isinstance(node, list):
        return [_rename_refs(item, renames) for item in node]
    return node


@dataclass(frozen=True)
class ExtractedSchema:
    """A named schema body plus any nested definitions it references."""

    name: str
    body: dict[str, Any]
    definitions: dict[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> str:
        return schema_ref(self.name)

    @property
    def wrapped(self) -> dict[str, Any]:
        return {"schema": self.body}


class SchemaExtractor:
    """Names types and extracts their component schema bodies.

    Extraction is a pure function of the type: calling ``extract`` twice
    for the same type returns equal results.
    """

    def __init__(
        self,
        generate: Callable[[Any], dict[str, Any]] | None = None,
        qualified_names: bool = False,
    ):
        self.generate = generate or generate_schema
        self.qualified_names = qualified_names

    def schema_name(self, tp: Any) -> str:
        """Component name for ``tp``.

        By default this is the short name pydantic uses for nested
        definitions (``Page[User]`` becomes ``Page_User_``), so a type gets
        the same name whether it is bound directly or nested. With qualified
        names on it is ``module.QualName``.
        """
        name = getattr(tp, "__name__", None)
        if name is None:
            # some typing constructs have no __name__
            name = repr(tp)
        if self.qualified_names:
            module = getattr(tp, "__module__", None)
            qualname = getattr(tp, "__qualname__", name)
            return f"{module}.{qualname}" if module else qualname
        return definition_name(tp) or name

    def check(self, tp: Any) -> None:
        """Fail now if ``tp`` cannot be turned into a schema."""
        self.generate(tp)

    def extract(self, tp: Any) -> ExtractedSchema:
        """Generate the schema for ``tp`` and strip generator metadata."""
        raw = copy.deepcopy(self.generate(tp))
        if not isinstance(raw, dict):
            raise SchemaExtractionError(tp, f"generator returned {type(raw).__name__}, expected a mapping")

        for key in GENERATOR_METADATA_KEYS:
            raw.pop(key, None)
        definitions = raw.pop(DEFINITIONS_KEY, {})

        name = self.schema_name(tp)
        renames = self._definition_renames(tp)
        if renames:
            raw = _rename_refs(raw, renames)
            definitions = {renames.get(k, k): _rename_refs(v, renames) for k, v in definitions.items()}

        # Recursive models come back as a bare $ref into their own definition.
        own_ref = raw.get("$ref")
        if len(raw) == 1 and isinstance(own_ref, str) and own_ref.startswith(REF_PREFIX):
            own_name = own_ref[len(REF_PREFIX):]
            if own_name == name:
                raw = definitions.pop(own_name, raw)
            elif own_name in definitions:
                raw = copy.deepcopy(definitions[own_name])
        logger.debug("Extracted schema %s (%d nested definitions)", name, len(definitions))
        return ExtractedSchema(name=name, body=raw, definitions=definitions)

    def _definition_renames(self, tp: Any) -> dict[str, str]:
        """Map pydantic's definition keys to this extractor's names."""
        if not self.qualified_names:
            return {}
        renames = {}
        for nested in referenced_types(tp):
            key = definition_name(nested)
            if key is not None:
                renames[key] = self.schema_name(nested)
        return renames
