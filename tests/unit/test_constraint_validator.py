"""
Unit tests for the constraint validator.
Tests: validate, check, find_unexpected_fields, collect_advisories.
"""
import pytest

from src.models.constraint import ConstraintKind, FieldConstraint
from src.validation.constraint_validator import (
    check,
    collect_advisories,
    find_unexpected_fields,
    validate,
)


class TestValidateOrder:
    def test_valid_order_has_no_errors(self, valid_order, order_schema, today):
        assert validate(valid_order, order_schema.constraints, today) == []

    def test_missing_required_field(self, valid_order, order_schema, today):
        del valid_order["customerEmail"]
        errors = validate(valid_order, order_schema.constraints, today)
        assert len(errors) == 1
        assert errors[0].field == "customerEmail"
        assert errors[0].constraint == "required"
        assert errors[0].value is None
        assert errors[0].message == "Customer email is required"

    @pytest.mark.parametrize("blank", [None, "", "   "])
    def test_null_and_blank_count_as_missing(self, valid_order, order_schema, today, blank):
        valid_order["orderId"] = blank
        errors = validate(valid_order, order_schema.constraints, today)
        assert [e.constraint for e in errors][0] == "required"

    def test_pattern_violation(self, valid_order, order_schema, today):
        valid_order["orderId"] = "ORDER123"
        errors = validate(valid_order, order_schema.constraints, today)
        assert len(errors) == 1
        assert errors[0].constraint == "pattern"
        assert errors[0].value == "ORDER123"
        assert errors[0].message == "Order ID must match pattern ORD-XXXXXX"

    def test_errors_follow_declaration_order(self, valid_order, order_schema, today):
        valid_order["paymentMethod"] = "BITCOIN"
        valid_order["orderId"] = "ORDER123"
        valid_order["customerEmail"] = "jane"
        errors = validate(valid_order, order_schema.constraints, today)
        assert [e.field for e in errors] == ["orderId", "customerEmail", "paymentMethod"]
        assert errors[2].message == "Unsupported payment method: BITCOIN"

    def test_future_date(self, valid_order, order_schema, today):
        valid_order["orderDate"] = "2024-07-01"
        errors = validate(valid_order, order_schema.constraints, today)
        assert [(e.field, e.constraint) for e in errors] == [("orderDate", "past_or_present")]

    def test_today_is_accepted(self, valid_order, order_schema, today):
        valid_order["orderDate"] = today.isoformat()
        assert validate(valid_order, order_schema.constraints, today) == []

    def test_unparseable_date_is_type_error(self, valid_order, order_schema, today):
        valid_order["orderDate"] = "next tuesday"
        errors = validate(valid_order, order_schema.constraints, today)
        assert errors[0].constraint == "type"
        assert errors[0].message == "Expected ISO-8601 date string, got string"

    def test_nested_item_range(self, valid_order, order_schema, today):
        valid_order["items"][0]["quantity"] = 0
        errors = validate(valid_order, order_schema.constraints, today)
        assert len(errors) == 1
        assert errors[0].field == "items[0].quantity"
        assert errors[0].constraint == "range"
        assert errors[0].message == "Quantity must be between 1 and 1000"

    @pytest.mark.parametrize("quantity", [2.5, True, "3"])
    def test_integer_range_type_errors(self, valid_order, order_schema, today, quantity):
        valid_order["items"][0]["quantity"] = quantity
        errors = validate(valid_order, order_schema.constraints, today)
        assert [(e.field, e.constraint) for e in errors] == [("items[0].quantity", "type")]

    def test_whole_float_accepted_for_integer(self, valid_order, order_schema, today):
        valid_order["items"][0]["quantity"] = 3.0
        assert validate(valid_order, order_schema.constraints, today) == []

    def test_numeric_string_is_type_error(self, valid_order, order_schema, today):
        valid_order["totalAmount"] = "4500"
        errors = validate(valid_order, order_schema.constraints, today)
        assert errors[0].message == "Expected number, got string"

    def test_empty_items(self, valid_order, order_schema, today):
        valid_order["items"] = []
        errors = validate(valid_order, order_schema.constraints, today)
        assert len(errors) == 1
        assert errors[0].constraint == "size"
        assert errors[0].message == "Order must contain between 1 and 50 items"

    def test_nested_object_wrong_shape(self, valid_order, order_schema, today):
        valid_order["shippingAddress"] = "350 Fifth Avenue, New York"
        errors = validate(valid_order, order_schema.constraints, today)
        assert [(e.field, e.constraint) for e in errors] == [("shippingAddress", "type")]

    def test_nested_address_violations(self, valid_order, order_schema, today):
        valid_order["shippingAddress"]["state"] = "New York"
        valid_order["shippingAddress"]["zipCode"] = "1011"
        errors = validate(valid_order, order_schema.constraints, today)
        assert [(e.field, e.constraint) for e in errors] == [
            ("shippingAddress.state", "size"),
            ("shippingAddress.zipCode", "pattern"),
        ]

    def test_non_object_item(self, valid_order, order_schema, today):
        valid_order["items"].append("a second laptop")
        errors = validate(valid_order, order_schema.constraints, today)
        assert [(e.field, e.constraint) for e in errors] == [("items[1]", "type")]

    def test_non_object_document(self, order_schema, today):
        errors = validate(["not", "an", "order"], order_schema.constraints, today)
        assert errors
        assert all(e.constraint == "required" for e in errors)


class TestCheck:
    def test_absent_value_skips_non_required(self):
        rule = FieldConstraint("code", ConstraintKind.PATTERN, pattern=r"^[A-Z]{3}$")
        assert check(None, rule) == []

    def test_enum(self):
        rule = FieldConstraint("color", ConstraintKind.ENUM, allowed=("RED", "GREEN"))
        assert check("RED", rule) == []
        assert check("BLUE", rule)[0].constraint == "enum"

    def test_size_on_string(self):
        rule = FieldConstraint("name", ConstraintKind.SIZE, max_size=3)
        assert check("abc", rule) == []
        assert check("abcd", rule)[0].constraint == "size"
        assert check(12, rule)[0].constraint == "type"

    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_number_is_type_error(self, number):
        rule = FieldConstraint("q", ConstraintKind.RANGE, minimum=1, maximum=10)
        errors = check(number, rule)
        assert [e.constraint for e in errors] == ["type"]
        assert errors[0].message.startswith("Expected finite number")

    def test_field_path_override(self):
        rule = FieldConstraint("quantity", ConstraintKind.RANGE, minimum=1)
        errors = check(0, rule, field_path="items[4].quantity")
        assert errors[0].field == "items[4].quantity"

    def test_bare_constraint_list(self):
        constraints = [
            FieldConstraint("name", "required"),
            FieldConstraint("age", "range", minimum=0, maximum=150, integer=True),
        ]
        assert validate({"name": "Ada", "age": 36}, constraints) == []
        errors = validate({"age": 200}, constraints)
        assert [e.field for e in errors] == ["name", "age"]


class TestUnexpectedFields:
    def test_no_extra_fields(self, valid_order, order_schema):
        assert find_unexpected_fields(valid_order, order_schema.constraints) == []

    def test_top_level_and_nested_extras(self, valid_order, order_schema):
        valid_order["giftWrap"] = True
        valid_order["items"][0]["color"] = "silver"
        valid_order["shippingAddress"]["floor"] = 4
        warnings = find_unexpected_fields(valid_order, order_schema.constraints)
        assert [w.field for w in warnings] == ["giftWrap", "items[0].color", "shippingAddress.floor"]
        assert {w.kind for w in warnings} == {"unexpected_field"}

    def test_non_object_value(self, order_schema):
        assert find_unexpected_fields([1, 2], order_schema.constraints) == []


class TestAdvisories:
    def test_no_advisories_for_ordinary_order(self, valid_order, order_schema):
        assert collect_advisories(valid_order, order_schema.advisories) == []

    def test_high_amount_large_quantity_and_crypto(self, valid_order, order_schema):
        valid_order["totalAmount"] = 20000.0
        valid_order["items"].append(
            {"productId": "SKU-2002", "productName": "Mouse", "quantity": 150, "unitPrice": 10.0}
        )
        valid_order["paymentMethod"] = "CRYPTOCURRENCY"
        warnings = collect_advisories(valid_order, order_schema.advisories)
        assert [w.field for w in warnings] == ["totalAmount", "items[1].quantity", "paymentMethod"]
        assert warnings[0].message == "Order amount is unusually high: 20000.0"
        assert warnings[0].suggestion == "Consider verifying the amount with the customer"
        assert warnings[0].kind == "suspicious_value"

    def test_threshold_is_exclusive(self, valid_order, order_schema):
        valid_order["totalAmount"] = 10000.0
        assert collect_advisories(valid_order, order_schema.advisories) == []
