"""
Schema definitions for the validation pipeline.

Two structures:
1. SCHEMA_DEFINITION_SCHEMA — JSON Schema every registry definition must
   satisfy before constraints are built from it.
2. ORDER_REQUEST_DEFINITION  — the sample order target (constraints,
   defaults, partial-accept allow-list, advisory rules).

Definitions are plain data so they stay inspectable and serializable;
src.validation.registry turns them into immutable FieldConstraint tuples.
"""
from src.config import settings

# =============================================================================
# 1. Definition meta-schema
# =============================================================================
CONSTRAINT_KINDS: list = [
    "required",
    "pattern",
    "email",
    "range",
    "size",
    "enum",
    "nested",
    "past_or_present",
]

SCHEMA_DEFINITION_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "required": ["name", "fields"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "fields": {"type": "array", "items": {"$ref": "#/$defs/field"}},
        "defaults": {"type": "object"},
        "lenient_fields": {"type": "array", "items": {"type": "string"}},
        "advisories": {"type": "array", "items": {"$ref": "#/$defs/advisory"}},
    },
    "$defs": {
        "field": {
            "type": "object",
            "additionalProperties": False,
            "required": ["path", "kind"],
            "properties": {
                "path": {"type": "string", "minLength": 1},
                "kind": {"type": "string", "enum": CONSTRAINT_KINDS},
                "message": {"type": "string"},
                "pattern": {"type": "string"},
                "minimum": {"type": "number"},
                "maximum": {"type": "number"},
                "integer": {"type": "boolean"},
                "min_size": {"type": "integer", "minimum": 0},
                "max_size": {"type": "integer", "minimum": 0},
                "allowed": {"type": "array", "minItems": 1},
                "many": {"type": "boolean"},
                "fields": {"type": "array", "items": {"$ref": "#/$defs/field"}},
                "example": {},
            },
        },
        "advisory": {
            "type": "object",
            "additionalProperties": False,
            "required": ["path", "kind", "threshold", "message"],
            "properties": {
                "path": {"type": "string", "minLength": 1},
                "kind": {"type": "string", "enum": ["above", "equals"]},
                "threshold": {},
                "message": {"type": "string"},
                "suggestion": {"type": "string"},
            },
        },
    },
}

# =============================================================================
# 2. Order request (sample target)
# =============================================================================
ORDER_REQUEST_DEFINITION: dict = {
    "name": "order_request",
    "fields": [
        {"path": "orderId", "kind": "required", "message": "Order ID is required",
         "example": f"{settings.ORDER_ID_PREFIX}-482910"},
        {"path": "orderId", "kind": "pattern",
         "pattern": rf"^{settings.ORDER_ID_PREFIX}-\d{{6}}$",
         "message": f"Order ID must match pattern {settings.ORDER_ID_PREFIX}-XXXXXX"},
        {"path": "customerEmail", "kind": "required", "message": "Customer email is required",
         "example": "jane.doe@example.com"},
        {"path": "customerEmail", "kind": "email", "message": "Must be a valid email address"},
        {"path": "orderDate", "kind": "required", "message": "Order date is required",
         "example": "2024-01-15"},
        {"path": "orderDate", "kind": "past_or_present", "message": "Order date cannot be in the future"},
        {"path": "items", "kind": "required", "message": "Order must contain at least one item"},
        {"path": "items", "kind": "size", "min_size": 1, "max_size": 50,
         "message": "Order must contain between {min_size} and {max_size} items"},
        {
            "path": "items",
            "kind": "nested",
            "many": True,
            "fields": [
                {"path": "productId", "kind": "required", "message": "Product ID is required",
                 "example": "SKU-1001"},
                {"path": "productName", "kind": "required", "message": "Product name is required",
                 "example": "Laptop"},
                {"path": "productName", "kind": "size", "max_size": 100, "message": "Product name too long"},
                {"path": "quantity", "kind": "required", "message": "Quantity is required",
                 "example": 3},
                {"path": "quantity", "kind": "range", "minimum": 1, "maximum": 1000, "integer": True,
                 "message": "Quantity must be between {minimum} and {maximum}"},
                {"path": "unitPrice", "kind": "required", "message": "Unit price is required",
                 "example": 1500.0},
                {"path": "unitPrice", "kind": "range", "minimum": 0.01, "message": "Unit price must be positive"},
            ],
        },
        {"path": "totalAmount", "kind": "required", "message": "Total amount is required",
         "example": 4500.0},
        {"path": "totalAmount", "kind": "range", "minimum": 0.01, "maximum": 999999.99,
         "message": "Total amount must be between ${minimum} and ${maximum}"},
        {"path": "shippingAddress", "kind": "required", "message": "Shipping address is required"},
        {
            "path": "shippingAddress",
            "kind": "nested",
            "fields": [
                {"path": "street", "kind": "required", "message": "Street is required",
                 "example": "350 Fifth Avenue"},
                {"path": "city", "kind": "required", "message": "City is required",
                 "example": "New York"},
                {"path": "state", "kind": "required", "message": "State is required",
                 "example": "NY"},
                {"path": "state", "kind": "size", "min_size": 2, "max_size": 2,
                 "message": "State must be 2-letter code"},
                {"path": "zipCode", "kind": "required", "message": "ZIP code is required",
                 "example": "10118"},
                {"path": "zipCode", "kind": "pattern", "pattern": r"^\d{5}(-\d{4})?$",
                 "message": "Invalid ZIP code format"},
                {"path": "country", "kind": "required", "message": "Country is required",
                 "example": "US"},
                {"path": "country", "kind": "size", "min_size": 2, "max_size": 2,
                 "message": "Country must be 2-letter ISO code"},
            ],
        },
        {"path": "paymentMethod", "kind": "required", "message": "Payment method is required",
         "example": "CREDIT_CARD"},
        {"path": "paymentMethod", "kind": "enum",
         "allowed": ["CREDIT_CARD", "DEBIT_CARD", "PAYPAL", "BANK_TRANSFER", "CRYPTOCURRENCY"],
         "message": "Unsupported payment method: {value}"},
    ],
    "defaults": {
        "shippingAddress.country": "US",
    },
    "lenient_fields": [
        "items[].productName",
    ],
    "advisories": [
        {"path": "totalAmount", "kind": "above", "threshold": settings.AMOUNT_WARNING_THRESHOLD,
         "message": "Order amount is unusually high",
         "suggestion": "Consider verifying the amount with the customer"},
        {"path": "items[].quantity", "kind": "above", "threshold": settings.QUANTITY_WARNING_THRESHOLD,
         "message": "Large quantity ordered",
         "suggestion": "Verify stock availability"},
        {"path": "paymentMethod", "kind": "equals", "threshold": "CRYPTOCURRENCY",
         "message": "Cryptocurrency payment selected",
         "suggestion": "Ensure compliance with regulations"},
    ],
}
