"""pytest configuration and shared fixtures."""

import pytest

from action_inputs import from_mapping


@pytest.fixture
def sample_inputs():
    """Raw input values, one per supported type."""
    return {
        "bool": "true",
        "float": "3.14",
        "double": "3.14159",
        "int": "9001",
        "string": "foo",
        "duration": "1m9s",
        "time": "2006-01-02T15:04:05Z",
        "list": "foo,bar,baz",
        "raw": '{"foo": "bar"}',
    }


@pytest.fixture
def lookup(sample_inputs):
    """Lookup over ``sample_inputs``."""
    return from_mapping(sample_inputs)
