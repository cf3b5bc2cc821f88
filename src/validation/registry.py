"""
Schema Registry — build immutable TargetSchemas from data definitions.

Definitions live in src/config/schemas.py as plain dicts. Each one is
checked with jsonschema against SCHEMA_DEFINITION_SCHEMA before any
FieldConstraint is built, so a bad definition fails at import/registration
time instead of during a pipeline run.

to_json_schema() renders a TargetSchema as a JSON Schema document used for
prompt format instructions and for checking generated payloads in tests.
"""
import logging
from typing import Any, Dict, List, Sequence

import jsonschema

from src.config.schemas import ORDER_REQUEST_DEFINITION, SCHEMA_DEFINITION_SCHEMA
from src.models.constraint import AdvisoryRule, ConstraintKind, FieldConstraint, TargetSchema

logger = logging.getLogger(__name__)


class SchemaDefinitionError(ValueError):
    """A schema definition is structurally invalid."""


def build_target_schema(definition: Dict[str, Any]) -> TargetSchema:
    """
    Validate *definition* and build its TargetSchema.

    Raises:
        SchemaDefinitionError: If the definition does not satisfy the
            definition meta-schema or describes an impossible constraint.
    """
    try:
        jsonschema.validate(instance=definition, schema=SCHEMA_DEFINITION_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise SchemaDefinitionError(f"Invalid schema definition at {location}: {e.message}") from e

    name = definition["name"]
    try:
        constraints = _build_constraints(definition["fields"])
        advisories = tuple(
            AdvisoryRule(
                path=a["path"],
                kind=a["kind"],
                threshold=a["threshold"],
                message=a["message"],
                suggestion=a.get("suggestion", ""),
            )
            for a in definition.get("advisories", [])
        )
    except ValueError as e:
        raise SchemaDefinitionError(f"Invalid schema definition '{name}': {e}") from e

    return TargetSchema(
        name=name,
        constraints=constraints,
        defaults=dict(definition.get("defaults", {})),
        lenient_fields=frozenset(definition.get("lenient_fields", [])),
        advisories=advisories,
    )


def _build_constraints(fields: Sequence[Dict[str, Any]]) -> tuple:
    constraints: List[FieldConstraint] = []
    for entry in fields:
        constraints.append(
            FieldConstraint(
                path=entry["path"],
                kind=ConstraintKind(entry["kind"]),
                message=entry.get("message", ""),
                pattern=entry.get("pattern"),
                minimum=entry.get("minimum"),
                maximum=entry.get("maximum"),
                integer=entry.get("integer", False),
                min_size=entry.get("min_size"),
                max_size=entry.get("max_size"),
                allowed=tuple(entry.get("allowed", ())),
                nested=_build_constraints(entry.get("fields", [])),
                many=entry.get("many", False),
                example=entry.get("example"),
            )
        )
    return tuple(constraints)


class SchemaRegistry:
    """Named TargetSchemas, built once and shared by reference."""

    def __init__(self):
        self._schemas: Dict[str, TargetSchema] = {}

    def register(self, definition: Dict[str, Any]) -> TargetSchema:
        schema = build_target_schema(definition)
        if schema.name in self._schemas:
            logger.warning("Schema '%s' re-registered, replacing previous definition", schema.name)
        self._schemas[schema.name] = schema
        return schema

    def get(self, name: str) -> TargetSchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise KeyError(f"Unknown schema '{name}'. Known schemas: {sorted(self._schemas)}") from None

    def names(self) -> List[str]:
        return sorted(self._schemas)

    def __contains__(self, name: str) -> bool:
        return name in self._schemas


# =============================================================================
# JSON Schema export
# =============================================================================

def to_json_schema(schema: TargetSchema) -> dict:
    """Render *schema* as a JSON Schema (draft 2020-12) object description."""
    document = _object_schema(schema.constraints)
    document["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    document["title"] = schema.name
    return document


def _object_schema(constraints: Sequence[FieldConstraint]) -> dict:
    by_path: Dict[str, List[FieldConstraint]] = {}
    for rule in constraints:
        by_path.setdefault(rule.path, []).append(rule)

    properties: Dict[str, dict] = {}
    required: List[str] = []
    for path, rules in by_path.items():
        if any(r.kind is ConstraintKind.REQUIRED for r in rules):
            required.append(path)
        properties[path] = _property_schema(rules)

    document = {"type": "object", "properties": properties}
    if required:
        document["required"] = required
    return document


def _property_schema(rules: List[FieldConstraint]) -> dict:
    prop: Dict[str, Any] = {}
    json_type = _json_type(rules)
    if json_type:
        prop["type"] = json_type

    for rule in rules:
        kind = rule.kind
        if kind is ConstraintKind.REQUIRED and json_type == "string":
            prop["minLength"] = 1
        elif kind is ConstraintKind.PATTERN:
            prop["pattern"] = rule.pattern
        elif kind is ConstraintKind.EMAIL:
            prop["format"] = "email"
        elif kind is ConstraintKind.PAST_OR_PRESENT:
            prop["format"] = "date"
        elif kind is ConstraintKind.RANGE:
            if rule.minimum is not None:
                prop["minimum"] = rule.minimum
            if rule.maximum is not None:
                prop["maximum"] = rule.maximum
        elif kind is ConstraintKind.SIZE:
            lo, hi = ("minItems", "maxItems") if json_type == "array" else ("minLength", "maxLength")
            if rule.min_size is not None:
                prop[lo] = rule.min_size
            if rule.max_size is not None:
                prop[hi] = rule.max_size
        elif kind is ConstraintKind.ENUM:
            prop["enum"] = list(rule.allowed)
        elif kind is ConstraintKind.NESTED:
            nested = _object_schema(rule.nested)
            if rule.many:
                prop["items"] = nested
            else:
                prop.update(nested)
    return prop


def _json_type(rules: List[FieldConstraint]) -> str:
    kinds = {r.kind for r in rules}
    for rule in rules:
        if rule.kind is ConstraintKind.NESTED:
            return "array" if rule.many else "object"
        if rule.kind is ConstraintKind.RANGE:
            return "integer" if rule.integer else "number"
    if kinds & {ConstraintKind.PATTERN, ConstraintKind.EMAIL, ConstraintKind.PAST_OR_PRESENT}:
        return "string"
    examples = [r.example for r in rules if r.example is not None]
    if examples and isinstance(examples[0], str):
        return "string"
    return ""


default_registry = SchemaRegistry()
default_registry.register(ORDER_REQUEST_DEFINITION)
