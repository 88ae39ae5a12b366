"""Bind named string inputs to the fields of a tagged dataclass.

Quick start::

    from dataclasses import dataclass
    from datetime import timedelta

    from action_inputs import from_environ, input_field, unmarshal

    @dataclass
    class Inputs:
        token: str = input_field("token,required", default="")
        timeout: timedelta = input_field("timeout", default=timedelta(minutes=5))
        paths: list[str] = input_field("paths", default_factory=list)

    inputs = Inputs()
    unmarshal(inputs, from_environ())
"""

from loguru import logger

from .binding import FieldBinding, bindings_for, input_field, parse_tag
from .casters import BUILTIN_CASTERS, Float32, Kind, convert, split, type_name
from .errors import (
    ConversionError,
    FieldError,
    InputsError,
    InvalidDestinationError,
    MissingInputError,
    UnsupportedTypeError,
)
from .lookups import env_key, from_environ, from_mapping
from .unmarshal import Lookup, unmarshal, validate_destination

logger.disable(__name__)

__all__ = [
    # binder
    "unmarshal",
    "validate_destination",
    "Lookup",
    # binding table
    "FieldBinding",
    "bindings_for",
    "input_field",
    "parse_tag",
    # casters
    "BUILTIN_CASTERS",
    "Float32",
    "Kind",
    "convert",
    "split",
    "type_name",
    # lookups
    "env_key",
    "from_environ",
    "from_mapping",
    # errors
    "InputsError",
    "InvalidDestinationError",
    "MissingInputError",
    "ConversionError",
    "UnsupportedTypeError",
    "FieldError",
]
