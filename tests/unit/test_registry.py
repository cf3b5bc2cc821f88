"""
Unit tests for the schema registry and JSON Schema export.
"""
import jsonschema
import pytest

from src.models.constraint import ConstraintKind, FieldConstraint, TargetSchema
from src.validation.registry import (
    SchemaDefinitionError,
    SchemaRegistry,
    build_target_schema,
    default_registry,
    to_json_schema,
)


class TestBuildTargetSchema:
    def test_order_definition(self, order_schema):
        assert order_schema.name == "order_request"
        assert len(order_schema.constraints) == 15
        assert order_schema.default_for("shippingAddress.country") == (True, "US")
        assert order_schema.is_lenient("items[].productName")
        assert len(order_schema.advisories) == 3

    def test_nested_constraints_built(self, order_schema):
        items = next(
            c for c in order_schema.constraints
            if c.path == "items" and c.kind is ConstraintKind.NESTED
        )
        assert items.many is True
        assert [c.path for c in items.nested][:2] == ["productId", "productName"]

    def test_minimal_definition(self):
        schema = build_target_schema(
            {"name": "ping", "fields": [{"path": "status", "kind": "required"}]}
        )
        assert isinstance(schema, TargetSchema)
        assert schema.defaults == {}
        assert schema.lenient_fields == frozenset()

    def test_missing_fields_key(self):
        with pytest.raises(SchemaDefinitionError, match="fields"):
            build_target_schema({"name": "broken"})

    def test_unknown_kind(self):
        with pytest.raises(SchemaDefinitionError):
            build_target_schema({"name": "broken", "fields": [{"path": "a", "kind": "uuid"}]})

    def test_impossible_constraint(self):
        definition = {
            "name": "broken",
            "fields": [{"path": "n", "kind": "range", "minimum": 10, "maximum": 1}],
        }
        with pytest.raises(SchemaDefinitionError, match="minimum > maximum"):
            build_target_schema(definition)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_target_schema({"name": "broken", "fields": [{"path": "a", "kind": "pattern"}]})


class TestSchemaRegistry:
    def test_default_registry(self):
        assert "order_request" in default_registry
        assert "order_request" in default_registry.names()

    def test_register_and_get(self, order_definition):
        registry = SchemaRegistry()
        schema = registry.register(order_definition)
        assert registry.get("order_request") is schema

    def test_unknown_name(self):
        registry = SchemaRegistry()
        with pytest.raises(KeyError, match="Known schemas"):
            registry.get("invoice")


class TestToJsonSchema:
    def test_order_schema_shape(self, order_schema):
        document = to_json_schema(order_schema)
        assert document["title"] == "order_request"
        assert document["type"] == "object"
        assert document["required"] == [
            "orderId",
            "customerEmail",
            "orderDate",
            "items",
            "totalAmount",
            "shippingAddress",
            "paymentMethod",
        ]
        props = document["properties"]
        assert props["orderId"]["pattern"] == r"^ORD-\d{6}$"
        assert props["customerEmail"]["format"] == "email"
        assert props["items"]["type"] == "array"
        assert props["items"]["minItems"] == 1
        assert props["items"]["items"]["properties"]["quantity"]["type"] == "integer"
        assert props["shippingAddress"]["type"] == "object"
        assert props["shippingAddress"]["properties"]["state"]["maxLength"] == 2
        assert "CRYPTOCURRENCY" in props["paymentMethod"]["enum"]

    def test_valid_order_conforms(self, order_schema, valid_order):
        jsonschema.validate(instance=valid_order, schema=to_json_schema(order_schema))

    def test_missing_field_rejected(self, order_schema, valid_order):
        del valid_order["paymentMethod"]
        with pytest.raises(jsonschema.ValidationError):
            jsonschema.validate(instance=valid_order, schema=to_json_schema(order_schema))

    def test_bare_schema(self):
        schema = TargetSchema(
            name="person",
            constraints=(
                FieldConstraint("age", ConstraintKind.RANGE, minimum=0, integer=True),
            ),
        )
        document = to_json_schema(schema)
        assert document["properties"]["age"] == {"type": "integer", "minimum": 0}
        assert "required" not in document
