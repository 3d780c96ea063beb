"""Data models for forms, fields and hypermedia wire formats."""

from .form import (
    BooleanField,
    ColorField,
    DateField,
    DateTimeField,
    Field,
    FileField,
    Form,
    HiddenField,
    NumberField,
    OptionsDataSource,
    PasswordField,
    SelectField,
    TextareaField,
    TextField,
    build_field,
)
from .wire import HalFormsProperty, HalFormsTemplate, SirenAction, SirenField

__all__ = [
    "Field",
    "TextField",
    "TextareaField",
    "PasswordField",
    "HiddenField",
    "DateField",
    "NumberField",
    "DateTimeField",
    "ColorField",
    "BooleanField",
    "SelectField",
    "FileField",
    "OptionsDataSource",
    "Form",
    "build_field",
    "HalFormsProperty",
    "HalFormsTemplate",
    "SirenAction",
    "SirenField",
]
