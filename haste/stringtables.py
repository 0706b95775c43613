"""Networked string tables: keyed strings with optional user data, updated from bit streams."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Protocol, Tuple

HISTORY_SIZE = 32
_HISTORY_BITMASK = HISTORY_SIZE - 1

MAX_STRING_BITS = 5
MAX_STRING_SIZE = 1 << MAX_STRING_BITS

MAX_USERDATA_BITS = 17
MAX_USERDATA_SIZE = 1 << MAX_USERDATA_BITS

_STRING_BUF_SIZE = 1024
_FLAG_COMPRESSED = 0x1


class StringTableError(Exception):
    """Raised when a string table update cannot be applied."""


class BitSource(Protocol):
    """What :meth:`StringTable.parse_update` needs from a bit reader."""

    def read_bool(self) -> bool: ...

    def read_uvarint32(self) -> int: ...

    def read_ubitvar(self) -> int: ...

    def read_ubit64(self, n: int) -> int: ...

    def read_string(self, max_length: int) -> bytes: ...

    def read_bits(self, n: int) -> bytes: ...

    def read_bytes(self, n: int) -> bytes: ...


def _read_uvarint32(data: bytes, pos: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise StringTableError("snappy: truncated length header")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break
        shift += 7
        if shift > 28:
            raise StringTableError("snappy: length header too long")
    if result > 0xFFFFFFFF:
        raise StringTableError("snappy: length header too large")
    return result, pos


def _snappy_decompress(data: bytes, limit: int) -> bytes:
    """Decompress a raw (unframed) snappy block of at most ``limit`` bytes."""
    length, pos = _read_uvarint32(data, 0)
    if length > limit:
        raise StringTableError(f"snappy: decompressed length {length} exceeds {limit}")

    out = bytearray()
    while pos < len(data):
        tag = data[pos]
        pos += 1
        kind = tag & 0x3
        if kind == 0:
            size = tag >> 2
            if size >= 60:
                extra = size - 59
                if pos + extra > len(data):
                    raise StringTableError("snappy: truncated literal length")
                size = int.from_bytes(data[pos : pos + extra], "little")
                pos += extra
            size += 1
            if pos + size > len(data):
                raise StringTableError("snappy: truncated literal")
            out += data[pos : pos + size]
            pos += size
        else:
            if kind == 1:
                if pos + 1 > len(data):
                    raise StringTableError("snappy: truncated copy")
                size = 4 + ((tag >> 2) & 0x7)
                offset = ((tag >> 5) << 8) | data[pos]
                pos += 1
            else:
                width = 2 if kind == 2 else 4
                if pos + width > len(data):
                    raise StringTableError("snappy: truncated copy")
                size = 1 + (tag >> 2)
                offset = int.from_bytes(data[pos : pos + width], "little")
                pos += width
            if offset == 0 or offset > len(out):
                raise StringTableError("snappy: invalid copy offset")
            start = len(out) - offset
            remaining = size
            while remaining > 0:
                piece = out[start : start + min(remaining, offset)]
                out += piece
                start += len(piece)
                remaining -= len(piece)
        if len(out) > length:
            raise StringTableError("snappy: output longer than declared")

    if len(out) != length:
        raise StringTableError("snappy: output shorter than declared")
    return bytes(out)


@dataclass
class StringTableItem:
    """An entry of a string table.

    ``user_data`` is a bytearray that later updates modify in place, so
    holders of a reference see the new contents.
    """

    string: Optional[bytes] = None
    user_data: Optional[bytearray] = None


class StringTable:
    """A named table of entries indexed by integer."""

    def __init__(
        self,
        name: str,
        user_data_fixed_size: bool,
        user_data_size: int,
        user_data_size_bits: int,
        flags: int,
        using_varint_bitcounts: bool,
    ) -> None:
        self._name = name
        self.user_data_fixed_size = user_data_fixed_size
        self.user_data_size = user_data_size
        self.user_data_size_bits = user_data_size_bits
        self.flags = flags
        self.using_varint_bitcounts = using_varint_bitcounts

        self._items: dict[int, StringTableItem] = {}
        self._history: List[bytes] = [bytes(MAX_STRING_SIZE)] * HISTORY_SIZE
        self._string_buf = bytearray(_STRING_BUF_SIZE)

    def __repr__(self) -> str:
        return f"StringTable(name={self._name!r}, items={len(self._items)})"

    @property
    def name(self) -> str:
        return self._name

    def _read_string(self, reader: BitSource, history_delta_index: int) -> bytes:
        buf = self._string_buf
        if reader.read_bool():
            # Part of the key comes from one of the last 32 keys.
            history_delta_zero = 0
            if history_delta_index > HISTORY_SIZE:
                history_delta_zero = history_delta_index & _HISTORY_BITMASK
            index = (history_delta_zero + reader.read_ubit64(5)) & _HISTORY_BITMASK
            bytes_to_copy = reader.read_ubit64(MAX_STRING_BITS)
            buf[:bytes_to_copy] = self._history[index][:bytes_to_copy]
            tail = reader.read_string(_STRING_BUF_SIZE - bytes_to_copy)
        else:
            bytes_to_copy = 0
            tail = reader.read_string(_STRING_BUF_SIZE)
        if bytes_to_copy + len(tail) > _STRING_BUF_SIZE:
            raise StringTableError("string is too long")
        buf[bytes_to_copy : bytes_to_copy + len(tail)] = tail
        size = bytes_to_copy + len(tail)

        self._history[history_delta_index & _HISTORY_BITMASK] = bytes(buf[:MAX_STRING_SIZE])
        return bytes(buf[:size])

    def _read_user_data(self, reader: BitSource) -> bytes:
        if self.user_data_fixed_size:
            data = reader.read_bits(self.user_data_size_bits)
            return bytes(data[: self.user_data_size])

        is_compressed = bool(self.flags & _FLAG_COMPRESSED) and reader.read_bool()
        if self.using_varint_bitcounts:
            size = reader.read_ubitvar()
        else:
            size = reader.read_ubit64(MAX_USERDATA_BITS)
        if size > MAX_USERDATA_SIZE:
            raise StringTableError(f"user data size {size} exceeds {MAX_USERDATA_SIZE}")

        data = bytes(reader.read_bytes(size))
        if is_compressed:
            return _snappy_decompress(data, MAX_USERDATA_SIZE)
        return data

    def parse_update(self, reader: BitSource, num_entries: int) -> None:
        """Apply ``num_entries`` entry updates read from ``reader``.

        Each entry carries an index (incremented or given), an optional key
        and optional user data. Keys of existing entries are kept; their user
        data is overwritten in place.
        """
        entry_index = -1
        history_delta_index = 0

        for _ in range(max(num_entries, 0)):
            if reader.read_bool():
                entry_index += 1
            else:
                entry_index = reader.read_uvarint32() + 1

            string: Optional[bytes] = None
            if reader.read_bool():
                string = self._read_string(reader, history_delta_index)
                history_delta_index += 1

            user_data: Optional[bytes] = None
            if reader.read_bool():
                user_data = self._read_user_data(reader)

            existing = self._items.get(entry_index)
            if existing is None:
                self._items[entry_index] = StringTableItem(
                    string=string,
                    user_data=None if user_data is None else bytearray(user_data),
                )
            elif existing.user_data is not None:
                if user_data is not None:
                    existing.user_data[:] = user_data
            else:
                existing.user_data = None if user_data is None else bytearray(user_data)

    def do_full_update(self, table: Any) -> None:
        """Apply a full snapshot of this table.

        ``table`` has ``table_name`` and ``items``; each item has ``str``
        (text or None) and ``data`` (bytes or None).
        """
        if table.table_name != self._name:
            raise StringTableError(
                f"trying to do a full update of {self._name!r} with {table.table_name!r}"
            )
        incoming_items = list(table.items)
        if len(incoming_items) < len(self._items):
            raise StringTableError("removing entries is not supported")

        for index, incoming in enumerate(incoming_items):
            data = None if incoming.data is None else bytearray(incoming.data)
            existing = self._items.get(index)
            if existing is not None:
                existing.user_data = data
            else:
                string = None if incoming.str is None else incoming.str.encode("utf-8")
                self._items[index] = StringTableItem(string=string, user_data=data)

    def items(self) -> Iterator[Tuple[int, StringTableItem]]:
        """Iterate over ``(entry_index, item)`` pairs."""
        return iter(self._items.items())

    def get_item(self, entry_index: int) -> Optional[StringTableItem]:
        return self._items.get(entry_index)


class StringTableContainer:
    """All string tables of a stream, addressed by creation order or by name."""

    def __init__(self) -> None:
        self._tables: List[StringTable] = []

    def __len__(self) -> int:
        return len(self._tables)

    def create_string_table(
        self,
        name: str,
        user_data_fixed_size: bool,
        user_data_size: int,
        user_data_size_bits: int,
        flags: int,
        using_varint_bitcounts: bool,
    ) -> StringTable:
        """Create a table, append it and return it."""
        if self.find_table(name) is not None:
            raise StringTableError(f"tried to create string table {name!r} twice")
        table = StringTable(
            name,
            user_data_fixed_size,
            user_data_size,
            user_data_size_bits,
            flags,
            using_varint_bitcounts,
        )
        self._tables.append(table)
        return table

    def do_full_update(self, tables: Iterable[Any]) -> None:
        """Apply full snapshots to the tables that exist; others are ignored."""
        for incoming in tables:
            existing = self.find_table(incoming.table_name)
            if existing is not None:
                existing.do_full_update(incoming)

    def find_table(self, name: str) -> Optional[StringTable]:
        return next((table for table in self._tables if table.name == name), None)

    def get_table(self, table_id: int) -> Optional[StringTable]:
        if 0 <= table_id < len(self._tables):
            return self._tables[table_id]
        return None

    def has_table(self, table_id: int) -> bool:
        return self.get_table(table_id) is not None

    def clear(self) -> None:
        self._tables.clear()

    def is_empty(self) -> bool:
        return not self._tables

    def tables(self) -> Iterator[StringTable]:
        return iter(self._tables)