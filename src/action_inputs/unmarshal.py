"""Populate a tagged dataclass from named string inputs.

Execution flow (``unmarshal`` entry point)::

    validate_destination(v)              ← fail fast, nothing touched yet
      │
      ▼
    for binding in bindings_for(type(v)):          ← declaration order
        skip: private / untagged / "-" / empty optional
        raw   = lookup(binding.input_name)
        value = casters.convert(binding.type_name, raw)
        setattr(v, binding.name, value)

The walk is not transactional: when field N fails, fields assigned before it
keep their new values.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable

from loguru import logger

from .binding import TAG, bindings_for
from .casters import convert
from .errors import (
    ConversionError,
    FieldError,
    InvalidDestinationError,
    MissingInputError,
)

Lookup = Callable[[str], str]


def _describe(v: Any) -> str:
    return type(v).__qualname__


def validate_destination(v: Any) -> None:
    """Check that *v* is a mutable dataclass instance.

    Raises ``InvalidDestinationError`` with a distinct message for each
    rejected shape.
    """
    if v is None:
        raise InvalidDestinationError("nil destination")
    if isinstance(v, type):
        if dataclasses.is_dataclass(v):
            raise InvalidDestinationError(f"non-instance {v.__qualname__}")
        raise InvalidDestinationError(f"non-record {v.__qualname__}")
    if not dataclasses.is_dataclass(v):
        raise InvalidDestinationError(f"non-record {_describe(v)}")
    if v.__dataclass_params__.frozen:
        raise InvalidDestinationError(f"frozen {_describe(v)}")


def unmarshal(v: Any, lookup: Lookup, *, tag: str = TAG) -> None:
    """Update the fields of dataclass instance *v* from named input values.

    A field is bound when its metadata carries a *tag* entry (``"input"`` by
    default).  The value for input ``name`` is ``lookup(name)``; an empty
    string means the input is unset.

    Fields that are private, untagged, or tagged ``"-"`` are left alone.

    Args:
        v:      Destination record, a non-frozen dataclass instance.
        lookup: Callable mapping an input name to its raw string value.
        tag:    Metadata key holding the binding tag.

    Raises:
        InvalidDestinationError: *v* is not a writable record.
        MissingInputError:       A ``required`` input has no value.
        FieldError:              A value could not be converted; the
                                 ``ConversionError`` is chained as cause.
    """
    validate_destination(v)

    for binding in bindings_for(type(v), tag):
        if not binding.writable:
            logger.debug("skip {}: not writable", binding.name)
            continue

        if binding.tag is None:
            continue

        if binding.ignored:
            logger.debug("skip {}: ignored", binding.name)
            continue

        raw = lookup(binding.input_name)
        if raw == "":
            if binding.required:
                raise MissingInputError(binding.input_name)
            logger.debug("skip {}: input {!r} is unset", binding.name, binding.input_name)
            continue

        try:
            value = convert(binding.type_name, raw)
        except ConversionError as err:
            raise FieldError(binding.name, err) from err

        setattr(v, binding.name, value)
        logger.debug("set {} from input {!r} ({})", binding.name, binding.input_name, binding.type_name)
