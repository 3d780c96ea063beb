"""Form validation from JSON Schema fragments.

HAL-FORMS servers can attach a JSON Schema to a property as a non-standard
``_schema`` key; it ends up in the field's ``extensions``. Fields without one
get a schema derived from their type and constraints.

The per-field schemas are assembled into one object schema following the
dot-path field names. Each fragment keeps its own ``$ref``/``$defs``: local
references are rebased onto the fragment's position in the combined schema.
Optional fields also accept null, and null values are dropped from the
returned value.
"""

from collections.abc import Sequence
from typing import Any

from jsonschema import Draft202012Validator

from ..models.form import (
    BooleanField,
    DateField,
    DateTimeField,
    Field,
    FileField,
    HiddenField,
    NumberField,
    SelectField,
)
from .schema import FieldNode, SchemaPlugin, ValidationIssue, ValidationResult, Validator, build_field_tree

SCHEMA_EXTENSION = "_schema"


def _escape_pointer(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def rebase_refs(schema: Any, pointer: str) -> Any:
    """
    Return a copy of a schema whose local ``$ref`` values point below
    ``pointer`` instead of the document root.
    """
    if isinstance(schema, list):
        return [rebase_refs(item, pointer) for item in schema]
    if not isinstance(schema, dict):
        return schema
    result = {}
    for key, value in schema.items():
        if key == "$ref" and isinstance(value, str) and value.startswith("#"):
            result[key] = "#" + pointer + value[1:]
        else:
            result[key] = rebase_refs(value, pointer)
    return result


def fallback_schema(form_field: Field) -> dict[str, Any]:
    """Derive a JSON Schema from a field's kind and constraints."""
    if isinstance(form_field, BooleanField):
        return {"type": "boolean"}
    if isinstance(form_field, NumberField):
        schema: dict[str, Any] = {"type": "number"}
        if form_field.min is not None:
            schema["minimum"] = form_field.min
        if form_field.max is not None:
            schema["maximum"] = form_field.max
        return schema
    if isinstance(form_field, (DateField, DateTimeField)):
        return {"type": "string"}
    if isinstance(form_field, HiddenField):
        return {"type": ["string", "number", "boolean", "null"]}
    if isinstance(form_field, SelectField):
        if form_field.multiple:
            return {"type": "array", "items": {"type": "string"}}
        return {"type": "string"}
    if isinstance(form_field, FileField):
        return {}

    schema = {"type": "string"}
    min_length = getattr(form_field, "min_length", None)
    max_length = getattr(form_field, "max_length", None)
    pattern = getattr(form_field, "pattern", None)
    if min_length is not None:
        schema["minLength"] = min_length
    if max_length is not None:
        schema["maxLength"] = max_length
    if pattern:
        schema["pattern"] = pattern
    return schema


def _field_schema(form_field: Field) -> Any:
    embedded = form_field.extensions.get(SCHEMA_EXTENSION)
    if isinstance(embedded, (dict, bool)):
        return embedded
    return fallback_schema(form_field)


def _build_node(node: FieldNode, pointer: str) -> Any:
    """Build the schema for a node placed at ``pointer`` in the document."""
    required = node.required
    # Optional nodes are wrapped as {"anyOf": [schema, {"type": "null"}]}
    inner_pointer = pointer if required else f"{pointer}/anyOf/0"

    if node.children:
        properties = {}
        required_keys = []
        for key, child in node.children.items():
            child_pointer = f"{inner_pointer}/properties/{_escape_pointer(key)}"
            properties[key] = _build_node(child, child_pointer)
            if child.required:
                required_keys.append(key)
        schema: Any = {"type": "object", "properties": properties}
        if required_keys:
            schema["required"] = required_keys
    elif node.form_field is not None:
        schema = rebase_refs(_field_schema(node.form_field), inner_pointer)
    else:
        schema = {}

    if required:
        return schema
    return {"anyOf": [schema, {"type": "null"}]}


def _drop_nulls(value: Any, node: FieldNode) -> Any:
    if not isinstance(value, dict) or not node.children:
        return value
    cleaned = {}
    for key, item in value.items():
        child = node.children.get(key)
        if child is None:
            cleaned[key] = item
        elif item is None and not child.required:
            continue
        else:
            cleaned[key] = _drop_nulls(item, child)
    return cleaned


def build_form_schema(fields: Sequence[Field]) -> tuple[dict[str, Any], FieldNode]:
    """Assemble the combined JSON Schema for a form."""
    tree = build_field_tree(fields)
    properties = {}
    required_keys = []
    for key, child in tree.children.items():
        properties[key] = _build_node(child, f"/properties/{_escape_pointer(key)}")
        if child.required:
            required_keys.append(key)
    schema: dict[str, Any] = {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": properties,
    }
    if required_keys:
        schema["required"] = required_keys
    return schema, tree


class JsonSchemaValidator(Validator):
    vendor = "jsonschema"

    def __init__(self, schema: dict[str, Any], tree: FieldNode) -> None:
        Draft202012Validator.check_schema(schema)
        self.schema = schema
        self.tree = tree
        self._validator = Draft202012Validator(
            schema, format_checker=Draft202012Validator.FORMAT_CHECKER
        )

    def validate(self, data: Any) -> ValidationResult:
        errors = sorted(
            self._validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path]
        )
        if errors:
            return ValidationResult(
                issues=[
                    ValidationIssue(message=error.message, path=tuple(error.absolute_path))
                    for error in errors
                ]
            )
        return ValidationResult(value=_drop_nulls(data, self.tree))


class JsonSchemaPlugin(SchemaPlugin):
    """Validates form data with the jsonschema library (Draft 2020-12)."""

    def create_schema(self, fields: Sequence[Field]) -> Validator:
        schema, tree = build_form_schema(fields)
        return JsonSchemaValidator(schema, tree)
