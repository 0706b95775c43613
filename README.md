# haste

Pure-Python building blocks for reading Source 2 replays (Dota 2, Deadlock).
It has no dependencies outside the standard library.

## Modules

- `haste.tokenizer`: `Tokenizer` iterates over the `Token`s of a network
  variable type string such as `CHandle< CDOTASpecGraphPlayerData >[24]`. Each
  token has a `TokenKind`, a `Span` of byte positions, and a `value` for
  identifiers and literals. A character that cannot start a token raises
  `UnknownCharError`.
- `haste.vartype`: `parse(text)` turns a var type string into a tree of
  `Ident`, `NumLit`, `Pointer`, `Template` and `Array` nodes. `StrLit` is also
  defined. Malformed input raises `UnknownCharError`, `UnexpectedEofError` or
  `UnexpectedTokenError`. All three subclass `VarTypeError`.
- `haste.fxhash`: the 64-bit fx hash used to compare serializer and field
  names. It provides `hash_bytes(data)` and `add_u64_to_hash(hash_value, value)`.
- `haste.quantizedfloat`: `QuantizedFloat(bit_count, encode_flags, low_value,
  high_value)` decodes floats that were packed into a fixed number of bits.
  It computes in single precision. Two methods are available:
  - `quantize(value)` snaps a value to the nearest step.
  - `decode(reader)` reads one value from an object that has `read_bool()` and
    `read_ubit64(n)`.

  Setup errors raise `InvalidEncodeFlagsError` or `InvalidRangeError`, both
  subclasses of `QuantizedFloatError`. A bit count outside 1..31 raises
  `ValueError`.
- `haste.stringtables`: `StringTable` and `StringTableContainer`.
  - `StringTable.parse_update(reader, num_entries)` applies an incremental
    update. It handles key history, fixed-size user data, and snappy-compressed
    user data.
  - `do_full_update` applies a full snapshot.
  - Entries are `StringTableItem`s with `string` and `user_data`.
  - `StringTableError` is raised when an update cannot be applied.
- `haste.instancebaseline`: `InstanceBaseline` maps class ids to the user data
  of the `instancebaseline` string table.
  - `update(string_table, classes)` fills the map.
  - `by_id(class_id)` returns the data for a class id.
  - `clear()` empties the map.
- `haste.huffman`: `build_fieldop_hierarchy()` builds the Huffman tree of
  field-path operations from `Leaf` and `Branch` nodes. The tree can be
  rendered with `format_table`, `format_dot` or `tree_depth`.

## Install

```
pip install .
```

## Examples

```python
from haste.vartype import parse
from haste.fxhash import hash_bytes

print(parse("uint64[256]"))
# Array(expr=Ident(name='uint64'), length=NumLit(value=256))

serializer_hash = hash_bytes(b"CCitadelPlayerPawn")
```

String tables and instance baselines from a full snapshot. Any objects with
these attributes will do:

- a snapshot table has `table_name` and `items`;
- an item has `str` and `data`.

```python
from types import SimpleNamespace

from haste.instancebaseline import InstanceBaseline
from haste.stringtables import StringTableContainer

container = StringTableContainer()
table = container.create_string_table("instancebaseline", False, 0, 0, 0, False)
container.do_full_update([
    SimpleNamespace(
        table_name="instancebaseline",
        items=[SimpleNamespace(str="7", data=b"\x01\x02")],
    )
])

baseline = InstanceBaseline()
baseline.update(table, classes=8)
print(baseline.by_id(7))  # bytearray(b'\x01\x02')
```

## Command line

The `huffmanfieldpath` command prints the field-op Huffman tree:

```
huffmanfieldpath table
huffmanfieldpath dot
huffmanfieldpath depth
```

- `table` lists every operation with its weight, bit id and depth.
- `dot` prints a Graphviz digraph of the tree.
- `depth` prints the depth of the deepest leaf.

Run without arguments, it prints a usage line and exits with status 42.

## What it does not do

This package does not open or walk replay files. It also does not provide:

- a bit reader;
- protobuf message decoding;
- flattened serializers;
- entity state;
- a replay runner with visitor callbacks.

`QuantizedFloat.decode` and `StringTable.parse_update` expect the caller to
supply a bit reader object.

## Tests

```
pip install .[test]
pytest
```