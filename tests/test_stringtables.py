from types import SimpleNamespace

import pytest

from haste.stringtables import (
    MAX_USERDATA_BITS,
    StringTable,
    StringTableContainer,
    StringTableError,
    StringTableItem,
)


class ScriptedReader:
    """Reader that answers each call with the next scripted value."""

    def __init__(self, *calls):
        self._calls = list(calls)

    def _pop(self, method, arg=None):
        assert self._calls, f"unexpected call {method}"
        name, value, *expected_arg = self._calls.pop(0)
        assert name == method
        if expected_arg:
            assert expected_arg[0] == arg
        return value

    @property
    def exhausted(self):
        return not self._calls

    def read_bool(self):
        return self._pop("bool")

    def read_uvarint32(self):
        return self._pop("uvarint")

    def read_ubitvar(self):
        return self._pop("ubitvar")

    def read_ubit64(self, n):
        return self._pop("ubit", n)

    def read_string(self, max_length):
        return self._pop("string")

    def read_bits(self, n):
        return self._pop("bits", n)

    def read_bytes(self, n):
        value = self._pop("bytes")
        assert len(value) == n
        return value


def new_table(name="t", fixed=False, size=0, size_bits=0, flags=0, varint=False):
    return StringTable(name, fixed, size, size_bits, flags, varint)


def string_entry(text):
    return [("bool", True), ("bool", True), ("bool", False), ("string", text), ("bool", False)]


def test_incrementing_entries_with_strings():
    table = new_table()
    reader = ScriptedReader(*string_entry(b"first"), *string_entry(b"second"))
    table.parse_update(reader, 2)
    assert reader.exhausted
    assert dict(table.items()) == {
        0: StringTableItem(b"first", None),
        1: StringTableItem(b"second", None),
    }


def test_explicit_index():
    table = new_table()
    reader = ScriptedReader(
        ("bool", False), ("uvarint", 4), ("bool", False), ("bool", False)
    )
    table.parse_update(reader, 1)
    assert table.get_item(5) == StringTableItem(None, None)
    assert table.get_item(0) is None


def test_key_from_history():
    table = new_table()
    reader = ScriptedReader(
        *string_entry(b"abcdef"),
        ("bool", True),
        ("bool", True),
        ("bool", True),
        ("ubit", 0, 5),
        ("ubit", 3, 5),
        ("string", b"xyz"),
        ("bool", False),
    )
    table.parse_update(reader, 2)
    assert table.get_item(1).string == b"abcxyz"


def test_variable_user_data_uncompressed():
    table = new_table()
    reader = ScriptedReader(
        ("bool", True),
        ("bool", False),
        ("bool", True),
        ("ubit", 3, MAX_USERDATA_BITS),
        ("bytes", b"\x01\x02\x03"),
    )
    table.parse_update(reader, 1)
    assert table.get_item(0).user_data == bytearray(b"\x01\x02\x03")


@pytest.mark.parametrize(
    "compressed, expected",
    [(b"\x05\x10hello", b"hello"), (b"\x09\x08abc\x09\x03", b"abcabcabc")],
)
def test_compressed_user_data(compressed, expected):
    table = new_table(flags=1, varint=True)
    reader = ScriptedReader(
        ("bool", True),
        ("bool", False),
        ("bool", True),
        ("bool", True),
        ("ubitvar", len(compressed)),
        ("bytes", compressed),
    )
    table.parse_update(reader, 1)
    assert table.get_item(0).user_data == bytearray(expected)


def test_corrupt_compressed_user_data_raises():
    table = new_table(flags=1, varint=True)
    corrupt = b"\x09\x08abc\x09\x09"
    reader = ScriptedReader(
        ("bool", True),
        ("bool", False),
        ("bool", True),
        ("bool", True),
        ("ubitvar", len(corrupt)),
        ("bytes", corrupt),
    )
    with pytest.raises(StringTableError):
        table.parse_update(reader, 1)


def test_fixed_size_user_data_is_cut_to_size():
    table = new_table(fixed=True, size=2, size_bits=16)
    reader = ScriptedReader(
        ("bool", True), ("bool", False), ("bool", True), ("bits", b"\xaa\xbb", 16)
    )
    table.parse_update(reader, 1)
    assert table.get_item(0).user_data == bytearray(b"\xaa\xbb")


def test_update_overwrites_user_data_in_place_and_keeps_key():
    table = new_table()
    first = ScriptedReader(
        *string_entry(b"key")[:4],
        ("bool", True),
        ("ubit", 2, MAX_USERDATA_BITS),
        ("bytes", b"ab"),
    )
    table.parse_update(first, 1)
    held = table.get_item(0).user_data

    second = ScriptedReader(
        *string_entry(b"other")[:4],
        ("bool", True),
        ("ubit", 3, MAX_USERDATA_BITS),
        ("bytes", b"xyz"),
    )
    table.parse_update(second, 1)
    item = table.get_item(0)
    assert item.string == b"key"
    assert item.user_data is held
    assert held == bytearray(b"xyz")


def test_full_update():
    table = new_table("names")
    table.parse_update(ScriptedReader(*string_entry(b"kept")), 1)
    snapshot = SimpleNamespace(
        table_name="names",
        items=[
            SimpleNamespace(str="ignored", data=b"\x07"),
            SimpleNamespace(str="new", data=None),
        ],
    )
    table.do_full_update(snapshot)
    assert table.get_item(0) == StringTableItem(b"kept", bytearray(b"\x07"))
    assert table.get_item(1) == StringTableItem(b"new", None)


def test_full_update_wrong_name_raises():
    table = new_table("names")
    with pytest.raises(StringTableError):
        table.do_full_update(SimpleNamespace(table_name="other", items=[]))


def test_container_lookup():
    container = StringTableContainer()
    assert container.is_empty()
    first = container.create_string_table("a", False, 0, 0, 0, False)
    second = container.create_string_table("b", False, 0, 0, 0, False)
    assert container.find_table("b") is second
    assert container.find_table("missing") is None
    assert container.get_table(0) is first
    assert container.get_table(2) is None
    assert container.get_table(-1) is None
    assert container.has_table(1)
    assert [table.name for table in container.tables()] == ["a", "b"]


def test_container_duplicate_and_clear():
    container = StringTableContainer()
    container.create_string_table("a", False, 0, 0, 0, False)
    with pytest.raises(StringTableError):
        container.create_string_table("a", False, 0, 0, 0, False)
    container.clear()
    assert container.is_empty()
    assert not container.has_table(0)


def test_container_full_update_skips_unknown_tables():
    container = StringTableContainer()
    table = container.create_string_table("a", False, 0, 0, 0, False)
    container.do_full_update(
        [
            SimpleNamespace(table_name="a", items=[SimpleNamespace(str="x", data=b"1")]),
            SimpleNamespace(table_name="zzz", items=[SimpleNamespace(str="y", data=None)]),
        ]
    )
    assert table.get_item(0) == StringTableItem(b"x", bytearray(b"1"))
    assert container.find_table("zzz") is None