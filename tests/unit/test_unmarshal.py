"""Tests for destination validation and the field walk."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import pytest
from action_inputs import (
    ConversionError,
    FieldError,
    Float32,
    InvalidDestinationError,
    MissingInputError,
    UnsupportedTypeError,
    from_environ,
    from_mapping,
    input_field,
    unmarshal,
    validate_destination,
)


@dataclass
class Target:
    bool_: bool = input_field("bool", default=False)
    float32: Float32 = input_field("float", default=Float32(0.0))
    float64: float = input_field("double", default=0.0)
    int_: int = input_field("int", default=0)
    string: str = input_field("string", default="")
    duration: timedelta = input_field("duration", default=timedelta(0))
    time: Optional[datetime] = input_field("time", default=None)
    list_: List[str] = input_field("list", default_factory=list)
    bytes_: bytes = input_field("raw", default=b"")


@dataclass
class Empty:
    pass


@dataclass(frozen=True)
class Frozen:
    value: str = input_field("value", default="")


class TestValidateDestination:
    """Test destination validation."""

    def test_none(self):
        with pytest.raises(InvalidDestinationError, match="^nil destination$"):
            validate_destination(None)

    def test_record_class_instead_of_instance(self):
        with pytest.raises(InvalidDestinationError, match="^non-instance Empty$"):
            validate_destination(Empty)

    def test_frozen_instance(self):
        with pytest.raises(InvalidDestinationError, match="^frozen Frozen$"):
            validate_destination(Frozen())

    @pytest.mark.parametrize("value, name", [
        ("text", "str"),
        (42, "int"),
        ({"a": 1}, "dict"),
        ([Empty()], "list"),
        (int, "int"),
    ])
    def test_non_record(self, value, name):
        with pytest.raises(InvalidDestinationError, match=f"^non-record {name}$"):
            validate_destination(value)

    def test_is_type_error(self):
        """Callers catching TypeError also see invalid destinations."""
        with pytest.raises(TypeError):
            validate_destination(None)

    def test_record_instance_is_valid(self):
        assert validate_destination(Empty()) is None
        assert validate_destination(Target()) is None


class TestUnmarshal:
    """Test the field walk."""

    def test_all_supported_types(self, lookup):
        actual = Target()
        unmarshal(actual, lookup)

        assert actual.bool_ is True
        assert actual.float32 == pytest.approx(3.14, rel=1e-6)
        assert actual.float64 == 3.14159
        assert actual.int_ == 9001
        assert actual.string == "foo"
        assert actual.duration == timedelta(minutes=1, seconds=9)
        assert actual.time == datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
        assert actual.list_ == ["foo", "bar", "baz"]
        assert actual.bytes_ == b'{"foo": "bar"}'

    def test_absent_optional_inputs_keep_defaults(self):
        actual = Target()
        unmarshal(actual, from_mapping({"int": "1"}))

        assert actual == Target(int_=1)

    def test_untagged_field_left_alone(self, lookup):
        @dataclass
        class Partial:
            string: str = input_field("string", default="")
            untouched: str = "default"

        actual = Partial()
        unmarshal(actual, lookup)

        assert actual.string == "foo"
        assert actual.untouched == "default"

    def test_ignored_field_is_never_read(self):
        calls = []

        def recording_lookup(name):
            calls.append(name)
            return "value"

        @dataclass
        class Ignored:
            skipped: str = input_field("-", default="")
            kept: str = input_field("kept", default="")

        actual = Ignored()
        unmarshal(actual, recording_lookup)

        assert calls == ["kept"]
        assert actual.skipped == ""
        assert actual.kept == "value"

    def test_ignored_field_even_with_matching_input(self):
        @dataclass
        class Ignored:
            dash: str = input_field("-", default="")

        actual = Ignored()
        unmarshal(actual, from_mapping({"-": "value"}))

        assert actual.dash == ""

    def test_private_field_is_skipped(self):
        @dataclass
        class Private:
            _secret: str = input_field("secret", default="")

        actual = Private()
        unmarshal(actual, from_mapping({"secret": "value"}))

        assert actual._secret == ""

    def test_required_present(self):
        @dataclass
        class Required:
            token: str = input_field("token,required", default="")

        actual = Required()
        unmarshal(actual, from_mapping({"token": "abc"}))

        assert actual.token == "abc"

    def test_required_missing(self):
        @dataclass
        class Required:
            first: str = input_field("first", default="")
            token: str = input_field("token,required", default="")

        actual = Required()
        with pytest.raises(MissingInputError, match="^no value for required input token$") as exc_info:
            unmarshal(actual, from_mapping({"first": "set"}))

        assert exc_info.value.input_name == "token"
        assert actual.first == "set"

    def test_conversion_failure_names_field(self):
        @dataclass
        class Bad:
            count: int = input_field("count", default=0)

        with pytest.raises(FieldError) as exc_info:
            unmarshal(Bad(), from_mapping({"count": "many"}))

        err = exc_info.value
        assert err.field_name == "count"
        assert str(err) == 'field count: parsing int "many": invalid syntax'
        assert isinstance(err.__cause__, ConversionError)
        assert err.cause is err.__cause__

    def test_unsupported_type_after_assigned_field(self):
        """Earlier fields stay assigned when a later field fails."""

        @dataclass
        class Mixed:
            name: str = input_field("name", default="")
            amount: Decimal = input_field("amount", default=Decimal(0))
            after: str = input_field("after", default="")

        actual = Mixed()
        with pytest.raises(FieldError, match="^field amount: unsupported type decimal.Decimal$") as exc_info:
            unmarshal(actual, from_mapping({"name": "alice", "amount": "1.5", "after": "x"}))

        assert isinstance(exc_info.value.__cause__, UnsupportedTypeError)
        assert actual.name == "alice"
        assert actual.amount == Decimal(0)
        assert actual.after == ""

    def test_unsupported_type_with_absent_input_is_skipped(self):
        """The type is only checked when a value has to be converted."""

        @dataclass
        class Mixed:
            amount: Decimal = input_field("amount", default=Decimal(0))

        actual = Mixed()
        unmarshal(actual, from_mapping({}))

        assert actual.amount == Decimal(0)

    def test_invalid_destination_touches_nothing(self):
        calls = []

        with pytest.raises(InvalidDestinationError):
            unmarshal(Target, lambda name: calls.append(name) or "")

        assert calls == []

    def test_custom_tag_key(self):
        @dataclass
        class Env:
            home: str = field(default="", metadata={"env": "HOME_DIR"})
            other: str = input_field("other", default="")

        actual = Env()
        unmarshal(actual, from_mapping({"HOME_DIR": "/root", "other": "x"}), tag="env")

        assert actual.home == "/root"
        assert actual.other == ""

    def test_init_false_field_is_bound(self):
        @dataclass
        class Late:
            value: int = input_field("value", init=False, default=0)

        actual = Late()
        unmarshal(actual, from_mapping({"value": "3"}))

        assert actual.value == 3

    @pytest.mark.parametrize("raw", ["1" * 5000, "0x" + "f" * 5000])
    def test_oversized_int_is_wrapped(self, raw):
        @dataclass
        class Counter:
            count: int = input_field("count", default=0)

        with pytest.raises(FieldError, match="^field count: ") as exc_info:
            unmarshal(Counter(), from_mapping({"count": raw}))

        assert isinstance(exc_info.value.__cause__, ConversionError)

    def test_oversized_duration_is_wrapped(self):
        @dataclass
        class Timer:
            wait: timedelta = input_field("wait", default=timedelta(0))

        with pytest.raises(FieldError, match="^field wait: ") as exc_info:
            unmarshal(Timer(), from_mapping({"wait": "1" * 5000 + "s"}))

        assert isinstance(exc_info.value.__cause__, ConversionError)

    def test_undecodable_environment_bytes(self):
        """Raw bytes published through the environment reach a bytes field intact."""

        @dataclass
        class Payload:
            body: bytes = input_field("body", default=b"")

        raw = b"\xff\xfe{}".decode("utf-8", "surrogateescape")
        actual = Payload()
        unmarshal(actual, from_environ({"INPUT_BODY": raw}))

        assert actual.body == b"\xff\xfe{}"
