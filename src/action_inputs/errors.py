"""Exception hierarchy.

Every error raised by the package derives from ``InputsError``.  The concrete
classes also derive from the closest builtin so callers that already catch
``TypeError`` / ``ValueError`` keep working.
"""

from __future__ import annotations

from typing import Any


class InputsError(Exception):
    """Base class for all action_inputs errors."""
    pass


class InvalidDestinationError(InputsError, TypeError):
    """The destination passed to ``unmarshal`` is not a writable record."""
    pass


class MissingInputError(InputsError, ValueError):
    """A field tagged ``required`` has no value."""

    def __init__(self, input_name: str) -> None:
        super().__init__(f"no value for required input {input_name}")
        self.input_name = input_name


class ConversionError(InputsError, ValueError):
    """A raw string could not be converted into the requested type."""

    def __init__(self, type_name: str, value: Any, reason: str) -> None:
        super().__init__(f'parsing {type_name} "{value}": {reason}')
        self.type_name = type_name
        self.value = value
        self.reason = reason


class UnsupportedTypeError(ConversionError):
    """No conversion rule exists for the requested type."""

    def __init__(self, type_name: str) -> None:
        super().__init__(type_name, None, "unsupported type")

    def __str__(self) -> str:
        return f"unsupported type {self.type_name}"


class FieldError(InputsError):
    """Wraps a conversion failure with the name of the offending field."""

    def __init__(self, field_name: str, cause: Exception) -> None:
        super().__init__(f"field {field_name}: {cause}")
        self.field_name = field_name
        self.cause = cause
