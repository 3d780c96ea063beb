"""Action - executable forms and their validation plugins."""

from .action import Action, serialize_form_data
from .json_schema_plugin import JsonSchemaPlugin, JsonSchemaValidator
from .pydantic_plugin import PydanticSchemaPlugin, PydanticValidator
from .schema import (
    NoopSchemaPlugin,
    NoopValidator,
    SchemaPlugin,
    ValidationIssue,
    ValidationResult,
    Validator,
)

__all__ = [
    "Action",
    "serialize_form_data",
    "SchemaPlugin",
    "Validator",
    "ValidationIssue",
    "ValidationResult",
    "NoopSchemaPlugin",
    "NoopValidator",
    "PydanticSchemaPlugin",
    "PydanticValidator",
    "JsonSchemaPlugin",
    "JsonSchemaValidator",
]
