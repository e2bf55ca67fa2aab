import pytest

from onosconfig.errors import UnsupportedError
from onosconfig.model import PathValue, ReadWritePath, TypedValue, ValueType, Width


def test_string_value_to_string():
    tv = TypedValue(ValueType.STRING, "myvalue1a2c")
    assert tv.value_to_string() == "myvalue1a2c"


def test_int_and_uint_value_to_string_round_trip():
    for vtype, number in [(ValueType.INT, -9223372036854775808), (ValueType.UINT, 18446744073709551615)]:
        tv = TypedValue(vtype, number, [Width.SIXTY_FOUR])
        assert int(tv.value_to_string()) == number


def test_bool_value_to_string():
    assert TypedValue(ValueType.BOOL, True).value_to_string() == "true"
    assert TypedValue(ValueType.BOOL, False).value_to_string() == "false"


def test_decimal_value_to_string_keeps_precision():
    tv = TypedValue(ValueType.DECIMAL, 114159, [5])
    assert tv.value_to_string() == "1.14159"


def test_decimal_value_to_string_is_numerically_consistent():
    tv = TypedValue(ValueType.DECIMAL, -1234, [2])
    text = tv.value_to_string()
    assert text.startswith("-")
    assert float(text) == pytest.approx(-12.34)


def test_float_value_to_string():
    tv = TypedValue(ValueType.FLOAT, 1.14159)
    assert tv.value_to_string() == "1.141590"


def test_bytes_value_to_string():
    tv = TypedValue(ValueType.BYTES, b"as byte array")
    assert tv.value_to_string() == "YXMgYnl0ZSBhcnJheQ=="


def test_empty_value_to_string():
    assert TypedValue().value_to_string() == ""


def test_leaflist_string_contains_every_element():
    items = ["abc", "def", "ghi"]
    text = TypedValue(ValueType.LEAFLIST_STRING, items).value_to_string()
    for item in items:
        assert item in text
    assert text.index("abc") < text.index("def") < text.index("ghi")


def test_leaflist_int_contains_every_element():
    items = [12, 0, 305, -32768, 32767]
    text = TypedValue(ValueType.LEAFLIST_INT, items, [Width.SIXTEEN]).value_to_string()
    for item in items:
        assert str(item) in text


def test_unknown_type_raises():
    tv = TypedValue(99, b"\x00\x00\x00\x00")
    with pytest.raises(UnsupportedError):
        tv.value_to_string()


def test_path_value_holds_value():
    tv = TypedValue(ValueType.STRING, "Hello world!")
    pv = PathValue(path="/foo", value=tv)
    assert pv.value.value_to_string() == "Hello world!"
    assert pv.deleted is False


def test_read_write_path_lists_are_independent():
    first = ReadWritePath(path="/a")
    second = ReadWritePath(path="/b")
    first.type_opts.append(8)
    assert second.type_opts == []
    assert first.type_opts == [8]