"""Form validation backed by dynamically built pydantic models."""

from collections.abc import Sequence
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic import Field as PydanticField
from pydantic import ValidationError, create_model

from ..models.form import (
    BooleanField,
    DateField,
    DateTimeField,
    Field,
    FileField,
    HiddenField,
    NumberField,
    PasswordField,
    SelectField,
    TextareaField,
    TextField,
)
from .schema import FieldNode, SchemaPlugin, ValidationIssue, ValidationResult, Validator, build_field_tree

# Keys without a form field pass through, as with the JSON Schema plugin
_MODEL_CONFIG = ConfigDict(regex_engine="python-re", extra="allow")


def annotation_for_field(form_field: Field) -> Any:
    """
    Return the pydantic annotation for one field kind.

    Numbers must be numbers and text must be text; no coercion from strings.
    """
    if isinstance(form_field, BooleanField):
        return StrictBool
    if isinstance(form_field, NumberField):
        bounds = PydanticField(ge=form_field.min, le=form_field.max)
        return Annotated[StrictInt, bounds] | Annotated[StrictFloat, bounds]
    if isinstance(form_field, (DateField, DateTimeField)):
        return StrictStr
    if isinstance(form_field, HiddenField):
        return StrictStr | StrictInt | StrictFloat | StrictBool | None
    if isinstance(form_field, SelectField):
        return list[StrictStr] if form_field.multiple else StrictStr
    if isinstance(form_field, FileField):
        return Any
    if isinstance(form_field, (TextField, TextareaField, PasswordField)):
        pattern = getattr(form_field, "pattern", None)
        return Annotated[
            StrictStr,
            PydanticField(
                min_length=form_field.min_length,
                max_length=form_field.max_length,
                pattern=pattern,
            ),
        ]
    return StrictStr


def _build_model(name: str, node: FieldNode) -> type[BaseModel]:
    definitions: dict[str, Any] = {}
    for index, (key, child) in enumerate(node.children.items()):
        if child.children:
            annotation: Any = _build_model(f"{name}_{key}", child)
        elif child.form_field is not None:
            annotation = annotation_for_field(child.form_field)
        else:
            annotation = Any
        if child.required:
            definitions[f"field_{index}"] = (annotation, PydanticField(alias=key))
        else:
            definitions[f"field_{index}"] = (annotation | None, PydanticField(None, alias=key))
    return create_model(name, __config__=_MODEL_CONFIG, **definitions)


class PydanticValidator(Validator):
    vendor = "pydantic"

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model

    def validate(self, data: Any) -> ValidationResult:
        try:
            instance = self.model.model_validate(data)
        except ValidationError as e:
            return ValidationResult(
                issues=[
                    ValidationIssue(message=error["msg"], path=tuple(error["loc"]))
                    for error in e.errors()
                ]
            )
        return ValidationResult(value=instance.model_dump(by_alias=True, exclude_unset=True))


class PydanticSchemaPlugin(SchemaPlugin):
    """
    Builds one pydantic model per form.

    Dot-path names (``address.city``) become nested models; a nested model is
    required when any of its fields is.
    """

    def create_schema(self, fields: Sequence[Field]) -> Validator:
        return PydanticValidator(_build_model("FormData", build_field_tree(fields)))
