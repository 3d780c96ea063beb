"""Form validation contract.

A SchemaPlugin turns a form's fields into a Validator. ``validate`` never
raises for bad input: it returns a ValidationResult carrying either the
cleaned value or the list of issues, so callers decide how severe they are.

Plugins shipped with the package:
- NoopSchemaPlugin: accepts everything unchanged (default)
- PydanticSchemaPlugin: per-field-type pydantic model
- JsonSchemaPlugin: JSON Schema from ``_schema`` field extensions
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..constants import NOOP_VENDOR
from ..models.form import Field


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in submitted data."""

    message: str
    path: tuple[str | int, ...] = ()

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{'.'.join(str(p) for p in self.path)}: {self.message}"


@dataclass
class ValidationResult:
    """Outcome of Validator.validate()."""

    value: Any = None
    issues: list[ValidationIssue] | None = None

    @property
    def ok(self) -> bool:
        return not self.issues


class Validator(ABC):
    """Validates form data against a schema."""

    vendor: str = "unknown"

    @abstractmethod
    def validate(self, data: Any) -> ValidationResult:
        pass


class SchemaPlugin(ABC):
    """Builds a Validator from form fields."""

    @abstractmethod
    def create_schema(self, fields: Sequence[Field]) -> Validator:
        pass


class NoopValidator(Validator):
    vendor = NOOP_VENDOR

    def validate(self, data: Any) -> ValidationResult:
        return ValidationResult(value=data)


class NoopSchemaPlugin(SchemaPlugin):
    """Plugin whose validators accept any data."""

    def create_schema(self, fields: Sequence[Field]) -> Validator:
        return NoopValidator()


@dataclass
class FieldNode:
    """
    Node of the tree formed by dot-path field names.

    ``user.name`` and ``user.email`` become children of a ``user`` node. A
    node is required when its own field is, or when any descendant is.
    """

    form_field: Field | None = None
    children: dict[str, "FieldNode"] = field(default_factory=dict)

    @property
    def required(self) -> bool:
        if self.children:
            return any(child.required for child in self.children.values())
        return bool(self.form_field and self.form_field.required)


def build_field_tree(fields: Sequence[Field]) -> FieldNode:
    """Collapse dot-path field names into nested nodes."""
    root = FieldNode()
    for form_field in fields:
        path = [part for part in form_field.name.split(".") if part]
        if not path:
            continue
        current = root
        for part in path:
            current = current.children.setdefault(part, FieldNode())
        current.form_field = form_field
    return root
