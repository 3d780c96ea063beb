"""Form and field models.

A Form describes an executable state transition discovered in a response:
where to send it, how to encode it, and which fields it takes. Fields are a
tagged union keyed by ``type``; each kind carries its own constraints.

Field kinds:
    TextField       text, search, tel, url, email
    TextareaField   textarea
    PasswordField   password
    HiddenField     hidden
    DateField       date, month, week, time
    NumberField     number, range
    DateTimeField   datetime-local
    ColorField      color
    BooleanField    checkbox, radio
    SelectField     text family with options (inline or linked)
    FileField       file
"""

from dataclasses import dataclass, field
import math
from datetime import datetime
from typing import Any

TEXT_TYPES = frozenset({"text", "search", "tel", "url", "email"})
DATE_TYPES = frozenset({"date", "month", "week", "time"})
NUMBER_TYPES = frozenset({"number", "range"})
BOOLEAN_TYPES = frozenset({"checkbox", "radio"})


@dataclass(kw_only=True)
class Field:
    """Common attributes of every field kind."""

    name: str
    type: str
    label: str | None = None
    required: bool = False
    read_only: bool = False
    value: Any = None
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class TextField(Field):
    type: str = "text"
    placeholder: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass(kw_only=True)
class TextareaField(Field):
    type: str = "textarea"
    placeholder: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    cols: int | None = None
    rows: int | None = None


@dataclass(kw_only=True)
class PasswordField(Field):
    type: str = "password"
    placeholder: str | None = None
    min_length: int | None = None
    max_length: int | None = None


@dataclass(kw_only=True)
class HiddenField(Field):
    type: str = "hidden"
    placeholder: str | None = None


@dataclass(kw_only=True)
class DateField(Field):
    type: str = "date"
    min: str | None = None
    max: str | None = None
    step: float | None = None


@dataclass(kw_only=True)
class NumberField(Field):
    type: str = "number"
    value: float | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None


@dataclass(kw_only=True)
class DateTimeField(Field):
    type: str = "datetime-local"
    value: datetime | None = None
    min: str | None = None
    max: str | None = None
    step: float | None = None


@dataclass(kw_only=True)
class ColorField(Field):
    type: str = "color"


@dataclass(kw_only=True)
class BooleanField(Field):
    type: str = "checkbox"
    value: bool = False


@dataclass
class OptionsDataSource:
    """Linked source of select options, fetched by the UI layer."""

    href: str
    type: str | None = None
    label_field: str = "prompt"
    value_field: str = "value"


@dataclass(kw_only=True)
class SelectField(Field):
    """Field restricted to a set of options.

    ``options`` maps value to label for inline options. ``data_source`` is set
    instead when the options live behind a link.
    """

    type: str = "select"
    multiple: bool = False
    options: dict[str, str] | None = None
    data_source: OptionsDataSource | None = None


@dataclass(kw_only=True)
class FileField(Field):
    type: str = "file"
    multiple: bool = False
    accept: str | None = None


@dataclass
class Form:
    """A discovered HTTP request template."""

    uri: str
    name: str
    method: str = "GET"
    content_type: str = "application/json"
    title: str | None = None
    fields: list[Field] = field(default_factory=list)

    def field(self, name: str) -> Field | None:
        """Return a field by name."""
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None


def to_number(value: Any) -> float | int | None:
    """Coerce a wire value to a number. Empty or malformed values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number


def to_bool(value: Any) -> bool:
    """Coerce a wire value to a boolean. 'false', 'off' and '0' are False."""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false", "off", "0")
    return bool(value)


def to_datetime(value: Any) -> datetime | None:
    """Coerce a wire value to a datetime. Empty or malformed values become None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def build_field(
    field_type: str | None,
    *,
    name: str,
    label: str | None = None,
    required: bool = False,
    read_only: bool = False,
    value: Any = None,
    placeholder: str | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
    pattern: str | None = None,
    min: Any = None,
    max: Any = None,
    step: Any = None,
    cols: int | None = None,
    rows: int | None = None,
    extensions: dict[str, Any] | None = None,
) -> Field:
    """
    Build the field kind matching a wire ``type``, coercing its value.

    Unknown types degrade to a TextField that keeps the original type name.

    Args:
        field_type: Wire type. None means text.
        name: Field name.

    Returns:
        A Field subclass instance.
    """
    common: dict[str, Any] = {
        "name": name,
        "label": label,
        "required": bool(required),
        "read_only": bool(read_only),
        "extensions": dict(extensions or {}),
    }
    kind = field_type or "text"

    if kind == "hidden":
        return HiddenField(value=value, placeholder=placeholder, **common)
    if kind == "textarea":
        return TextareaField(
            value=value,
            placeholder=placeholder,
            min_length=min_length,
            max_length=max_length,
            cols=cols,
            rows=rows,
            **common,
        )
    if kind == "password":
        return PasswordField(
            placeholder=placeholder, min_length=min_length, max_length=max_length, **common
        )
    if kind in DATE_TYPES:
        return DateField(type=kind, value=value, min=min, max=max, step=step, **common)
    if kind in NUMBER_TYPES:
        return NumberField(
            type=kind,
            value=to_number(value),
            min=to_number(min),
            max=to_number(max),
            step=to_number(step),
            **common,
        )
    if kind == "datetime-local":
        return DateTimeField(value=to_datetime(value), min=min, max=max, step=step, **common)
    if kind == "color":
        return ColorField(value=value, **common)
    if kind in BOOLEAN_TYPES:
        return BooleanField(type=kind, value=to_bool(value), **common)
    if kind == "file":
        return FileField(value=value, **common)
    return TextField(
        type=kind,
        value=value,
        placeholder=placeholder,
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
        **common,
    )
