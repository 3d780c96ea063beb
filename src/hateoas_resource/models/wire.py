"""Pydantic models for hypermedia wire formats.

Only the parts of each format that carry structure the runtime acts on are
modelled: HAL-FORMS templates and properties, and Siren actions and fields.
Everything else is read as plain JSON.

Design Principles:
- Graceful degradation: extra="allow" keeps unknown keys, which become
  field extensions
- Aliases map camelCase wire names to Python attribute names
"""

from typing import Any

from pydantic import BaseModel, Field

from .form import OptionsDataSource, SelectField, build_field
from .form import Field as FormField

_SELECTABLE = frozenset({"text", "search", "tel", "url", "email"})


class HalFormsOptionsLink(BaseModel):
    """Remote option source of a HAL-FORMS property."""

    href: str
    type: str | None = None
    templated: bool = False

    model_config = {"extra": "allow"}


class HalFormsOptions(BaseModel):
    """HAL-FORMS ``options`` element, inline or linked."""

    inline: list[Any] | None = None
    link: HalFormsOptionsLink | None = None
    prompt_field: str = Field("prompt", alias="promptField")
    value_field: str = Field("value", alias="valueField")
    selected_values: list[Any] | None = Field(None, alias="selectedValues")
    max_items: int | None = Field(None, alias="maxItems")
    min_items: int | None = Field(None, alias="minItems")

    model_config = {"extra": "allow", "populate_by_name": True}

    @property
    def multiple(self) -> bool:
        if (self.model_extra or {}).get("multiple"):
            return True
        return self.max_items is not None and self.max_items > 1


class HalFormsProperty(BaseModel):
    """A single property of a HAL-FORMS template."""

    name: str
    type: str | None = None
    prompt: str | None = None
    value: Any = None
    required: bool = False
    read_only: bool = Field(False, alias="readOnly")
    placeholder: str | None = None
    regex: str | None = None
    min_length: int | None = Field(None, alias="minLength")
    max_length: int | None = Field(None, alias="maxLength")
    min: Any = None
    max: Any = None
    step: Any = None
    cols: int | None = None
    rows: int | None = None
    options: HalFormsOptions | None = None

    model_config = {"extra": "allow", "populate_by_name": True}

    def to_field(self) -> FormField:
        """Map the property onto the matching field kind."""
        extensions = dict(self.model_extra or {})
        if self.options is not None and (self.type is None or self.type in _SELECTABLE):
            return self._to_select(extensions)
        return build_field(
            self.type,
            name=self.name,
            label=self.prompt,
            required=self.required,
            read_only=self.read_only,
            value=self.value,
            placeholder=self.placeholder,
            min_length=self.min_length,
            max_length=self.max_length,
            pattern=self.regex,
            min=self.min,
            max=self.max,
            step=self.step,
            cols=self.cols,
            rows=self.rows,
            extensions=extensions,
        )

    def _to_select(self, extensions: dict[str, Any]) -> SelectField:
        options = self.options
        assert options is not None
        select = SelectField(
            name=self.name,
            label=self.prompt,
            required=self.required,
            read_only=self.read_only,
            multiple=options.multiple,
            value=options.selected_values if options.selected_values is not None else self.value,
            extensions=extensions,
        )
        if options.inline is not None:
            inline: dict[str, str] = {}
            for entry in options.inline:
                if isinstance(entry, dict):
                    inline[str(entry.get(options.value_field))] = entry.get(options.prompt_field)
                else:
                    inline[str(entry)] = str(entry)
            select.options = inline
        elif options.link is not None:
            select.data_source = OptionsDataSource(
                href=options.link.href,
                type=options.link.type,
                label_field=options.prompt_field,
                value_field=options.value_field,
            )
        return select


class HalFormsTemplate(BaseModel):
    """A HAL-FORMS ``_templates`` entry."""

    method: str = "GET"
    title: str | None = None
    target: str | None = None
    content_type: str = Field("application/json", alias="contentType")
    properties: list[HalFormsProperty] = Field(default_factory=list)

    model_config = {"extra": "allow", "populate_by_name": True}


class SirenField(BaseModel):
    """A field of a Siren action."""

    name: str
    type: str | None = None
    value: Any = None
    title: str | None = None

    model_config = {"extra": "allow"}

    def to_field(self) -> FormField:
        kind = "datetime-local" if self.type == "datetime" else self.type
        value = self.value
        if kind not in ("hidden", "number", "range", "checkbox", "radio") and not isinstance(
            value, str
        ):
            value = None
        return build_field(
            kind,
            name=self.name,
            label=self.title,
            value=value,
            extensions=dict(self.model_extra or {}),
        )


class SirenAction(BaseModel):
    """A Siren ``actions`` entry."""

    name: str
    href: str
    method: str = "GET"
    title: str | None = None
    type: str = "application/x-www-form-urlencoded"
    fields: list[SirenField] = Field(default_factory=list)

    model_config = {"extra": "allow"}
