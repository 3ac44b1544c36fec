from typing import Generic, TypeVar

from pydantic import BaseModel

from openapi3_builder.builder.dsl import PathsBuilder
from openapi3_builder.document.components import compute_components
from openapi3_builder.document.models import HttpMethod, PathTable
from openapi3_builder.schema.extractor import SchemaExtractor


class User(BaseModel):
    id: int
    name: str


class Error(BaseModel):
    message: str


class Address(BaseModel):
    city: str


class Customer(BaseModel):
    address: Address


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]


class UserPageEnvelope(BaseModel):
    page: Page[User]


class Node(BaseModel):
    value: int
    children: list["Node"] = []


class _Legacy:
    class Address(BaseModel):
        zip_code: str


class Shipment(BaseModel):
    address: _Legacy.Address


class CountingExtractor(SchemaExtractor):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    def extract(self, tp):
        self.calls.append(tp)
        return super().extract(tp)


def _paths(configure, extractor=None) -> tuple[PathTable, SchemaExtractor]:
    extractor = extractor or SchemaExtractor()
    table = PathTable()
    configure(PathsBuilder(table, extractor))
    return table, extractor


def _fake_generator(schemas: dict):
    return lambda tp: dict(schemas[tp])


class TestComputeComponents:
    def test_empty_table(self):
        assert compute_components(PathTable(), SchemaExtractor()) == {}

    def test_one_entry_per_type(self):
        def paths(p):
            p.get("/users", lambda op: op.code("200", lambda r: r.response("application/json", User)))
            p.post("/users", lambda op: (
                op.request_body(lambda b: b.request("application/json", User)),
                op.code("201", lambda r: r.response("application/json", User)),
            ))
            p.put("/users/{id}", lambda op: op.request_body(lambda b: b.request("application/xml", User)))

        table, extractor = _paths(paths)
        schemas = compute_components(table, extractor)
        assert list(schemas) == ["User"]
        assert schemas["User"] == extractor.extract(User).body

    def test_same_type_extracted_once_per_pass(self):
        def paths(p):
            p.get("/a", lambda op: op.code("200", lambda r: r.response("application/json", User)))
            p.get("/b", lambda op: op.code("200", lambda r: r.response("application/json", User)))
            p.get("/c", lambda op: op.code("404", lambda r: r.response("application/json", Error)))

        table, extractor = _paths(paths, CountingExtractor())
        compute_components(table, extractor)
        assert extractor.calls == [User, Error]

    def test_response_and_request_types_collected(self):
        def paths(p):
            p.get("/users", lambda op: op.code("404", lambda r: r.response("application/json", Error)))
            p.post("/users", lambda op: op.request_body(lambda b: b.request("application/json", User)))

        table, extractor = _paths(paths)
        assert set(compute_components(table, extractor)) == {"Error", "User"}

    def test_nested_definitions_hoisted(self):
        def paths(p):
            p.get("/customers", lambda op: op.code("200", lambda r: r.response("application/json", Customer)))

        table, extractor = _paths(paths)
        schemas = compute_components(table, extractor)
        assert set(schemas) == {"Customer", "Address"}
        assert schemas["Customer"]["properties"]["address"]["$ref"] == "#/components/schemas/Address"

    def test_name_collision_later_type_wins(self):
        """Known limitation: types sharing a short name overwrite each other."""
        FirstUser = type("User", (), {})
        SecondUser = type("User", (), {})
        extractor = SchemaExtractor(generate=_fake_generator({
            FirstUser: {"title": "first"},
            SecondUser: {"title": "second"},
        }))

        def paths(p):
            p.get("/one", lambda op: op.code("200", lambda r: r.response("application/json", FirstUser)))
            p.get("/two", lambda op: op.code("200", lambda r: r.response("application/json", SecondUser)))

        table, extractor = _paths(paths, extractor)
        assert compute_components(table, extractor) == {"User": {"title": "second"}}

    def test_request_schema_wins_over_response_schema(self):
        ResponseUser = type("User", (), {})
        RequestUser = type("User", (), {})
        extractor = SchemaExtractor(generate=_fake_generator({
            ResponseUser: {"title": "response"},
            RequestUser: {"title": "request"},
        }))

        def paths(p):
            # Request registered before the response, still merged last.
            p.post("/users", lambda op: op.request_body(lambda b: b.request("application/json", RequestUser)))
            p.get("/users", lambda op: op.code("200", lambda r: r.response("application/json", ResponseUser)))

        table, extractor = _paths(paths, extractor)
        assert compute_components(table, extractor) == {"User": {"title": "request"}}

    def test_qualified_names_avoid_collision(self):
        FirstUser = type("User", (), {"__module__": "first"})
        SecondUser = type("User", (), {"__module__": "second"})

        def paths(p):
            p.get("/one", lambda op: op.code("200", lambda r: r.response("application/json", FirstUser)))
            p.get("/two", lambda op: op.code("200", lambda r: r.response("application/json", SecondUser)))

        extractor = SchemaExtractor(generate=lambda tp: {"type": "object"}, qualified_names=True)
        table, extractor = _paths(paths, extractor)
        assert set(compute_components(table, extractor)) == {"first.User", "second.User"}

    def test_generic_model_bound_directly_and_nested(self):
        def paths(p):
            p.get("/a", lambda op: op.code("200", lambda r: r.response("application/json", Page[User])))
            p.get("/b", lambda op: op.code("200", lambda r: r.response("application/json", UserPageEnvelope)))

        table, extractor = _paths(paths)
        schemas = compute_components(table, extractor)
        assert set(schemas) == {"Page_User_", "UserPageEnvelope", "User"}
        binding = table["/a"][HttpMethod.GET].responses["200"].content["application/json"]
        assert binding.ref == "#/components/schemas/Page_User_"
        assert schemas["UserPageEnvelope"]["properties"]["page"]["$ref"] == binding.ref

    def test_qualified_names_nested_model_bound_both_ways(self):
        def paths(p):
            p.get("/addresses", lambda op: op.code("200", lambda r: r.response("application/json", Address)))
            p.get("/customers", lambda op: op.code("200", lambda r: r.response("application/json", Customer)))

        table, extractor = _paths(paths, SchemaExtractor(qualified_names=True))
        schemas = compute_components(table, extractor)
        module = Address.__module__
        assert set(schemas) == {f"{module}.Address", f"{module}.Customer"}
        address_ref = schemas[f"{module}.Customer"]["properties"]["address"]["$ref"]
        assert address_ref == f"#/components/schemas/{module}.Address"

    def test_qualified_names_recursive_model(self):
        def paths(p):
            p.get("/nodes", lambda op: op.code("200", lambda r: r.response("application/json", Node)))

        table, extractor = _paths(paths, SchemaExtractor(qualified_names=True))
        schemas = compute_components(table, extractor)
        name = f"{Node.__module__}.Node"
        assert list(schemas) == [name]
        assert schemas[name]["properties"]["children"]["items"]["$ref"] == f"#/components/schemas/{name}"

    def test_nested_request_definition_does_not_replace_bound_schema(self):
        def paths(p):
            p.get("/addresses", lambda op: op.code("200", lambda r: r.response("application/json", Address)))
            p.post("/shipments", lambda op: op.request_body(lambda b: b.request("application/json", Shipment)))

        table, extractor = _paths(paths)
        schemas = compute_components(table, extractor)
        assert set(schemas["Address"]["properties"]) == {"city"}
        assert "Shipment" in schemas
