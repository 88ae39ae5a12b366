"""Field binding table.

A record type is inspected once per tag key; the resulting list of
``FieldBinding`` descriptors is cached and reused by every ``unmarshal`` call
on that type.

Tag syntax (the value stored under ``field.metadata[tag]``)::

    "name"            bind input "name", optional
    "name,required"   bind input "name", fail when it has no value
    "-"               never bind this field
"""

from __future__ import annotations

import dataclasses
import weakref
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, get_type_hints

from .casters import type_name

TAG = "input"
IGNORE = "-"
REQUIRED_SUFFIX = ",required"

# record class -> {tag key -> table}; entries go away with the class
_TABLES: weakref.WeakKeyDictionary[type, Dict[str, Tuple[FieldBinding, ...]]] = weakref.WeakKeyDictionary()


@dataclass(frozen=True)
class FieldBinding:
    """Binding descriptor for one dataclass field.

    Attributes:
        name:       Attribute name on the record.
        type_name:  Token passed to ``casters.convert``.
        writable:   ``False`` for private (underscore-prefixed) fields.
        tag:        Raw tag string, ``None`` when the field is untagged.
        input_name: Name handed to the lookup callable.
        required:   Absence of a value is an error.
        ignored:    Tag name is the ``-`` sentinel.
    """

    name: str
    type_name: str
    writable: bool
    tag: Optional[str] = None
    input_name: str = ""
    required: bool = False
    ignored: bool = False


def parse_tag(tag: str) -> Tuple[str, bool]:
    """Split a tag into ``(input_name, required)``."""
    input_name = tag.removesuffix(REQUIRED_SUFFIX)
    return input_name, input_name != tag


def input_field(tag: str, *, key: str = TAG, **kwargs: Any) -> Any:
    """``dataclasses.field`` with the binding tag stored in its metadata.

    ::

        @dataclass
        class Inputs:
            token: str = input_field("token,required", default="")
            paths: list[str] = input_field("paths", default_factory=list)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[key] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def bindings_for(cls: type, tag: str = TAG) -> Tuple[FieldBinding, ...]:
    """Return the binding descriptors of dataclass *cls* in declaration order.

    The table is built once per class and tag key, and is dropped when the
    class itself is garbage collected.
    """
    per_class = _TABLES.get(cls)
    if per_class is not None and tag in per_class:
        return per_class[tag]

    table = _build_table(cls, tag)
    _TABLES.setdefault(cls, {})[tag] = table
    return table


def _build_table(cls: type, tag: str) -> Tuple[FieldBinding, ...]:
    hints = get_type_hints(cls)
    out: List[FieldBinding] = []

    for f in dataclasses.fields(cls):
        raw = f.metadata.get(tag)
        binding = FieldBinding(
            name=f.name,
            type_name=type_name(hints.get(f.name, f.type)),
            writable=not f.name.startswith("_"),
            tag=raw,
        )
        if raw is not None:
            input_name, required = parse_tag(raw)
            binding = dataclasses.replace(
                binding,
                input_name=input_name,
                required=required,
                ignored=input_name == IGNORE,
            )
        out.append(binding)

    return tuple(out)
