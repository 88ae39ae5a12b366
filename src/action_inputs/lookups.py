"""Ready-made lookup callables for ``unmarshal``.

A lookup maps an input name to its raw string value and returns ``""`` when
the input is unset.
"""

from __future__ import annotations

import os
from typing import Callable, Mapping, Optional

ENV_PREFIX = "INPUT_"


def from_mapping(values: Mapping[str, str]) -> Callable[[str], str]:
    """Lookup over a plain mapping; missing names read as ``""``."""

    def lookup(name: str) -> str:
        return values.get(name, "")

    return lookup


def env_key(name: str) -> str:
    """Environment variable name for input *name*: ``"my input"`` → ``"INPUT_MY_INPUT"``."""
    return ENV_PREFIX + name.replace(" ", "_").upper()


def from_environ(environ: Optional[Mapping[str, str]] = None) -> Callable[[str], str]:
    """Lookup following the GitHub Actions input convention.

    Input ``name`` is read from ``INPUT_<NAME>`` with surrounding whitespace
    trimmed.  *environ* defaults to ``os.environ`` and is read at call time,
    so later changes to the environment are visible.
    """

    def lookup(name: str) -> str:
        env = os.environ if environ is None else environ
        return env.get(env_key(name), "").strip()

    return lookup
