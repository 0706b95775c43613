"""Baseline entity state per class, taken from the ``instancebaseline`` string table."""

from __future__ import annotations

import re
from typing import List, Optional

from haste.stringtables import StringTable

INSTANCE_BASELINE_TABLE_NAME = "instancebaseline"

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_class_id(raw: Optional[bytes]) -> int:
    if raw is None:
        raise ValueError("instance baseline entry has no key")
    text = raw.decode("utf-8")
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid class id {text!r}")
    class_id = int(text)
    if not _I32_MIN <= class_id <= _I32_MAX:
        raise ValueError(f"class id {text!r} out of range")
    return class_id


class InstanceBaseline:
    """Baseline user data indexed by class id.

    The stored bytearrays are shared with the string table, so in-place
    updates of the table are visible here.
    """

    def __init__(self) -> None:
        self._data: List[Optional[bytearray]] = []

    def update(self, string_table: StringTable, classes: int) -> None:
        """Take baselines from ``string_table``, whose keys are class ids."""
        if len(self._data) < classes:
            self._data.extend([None] * (classes - len(self._data)))

        for _entry_index, item in string_table.items():
            class_id = _parse_class_id(item.string)
            if not 0 <= class_id < len(self._data):
                raise IndexError(f"class id {class_id} out of range")
            self._data[class_id] = item.user_data

    def by_id(self, class_id: int) -> bytearray:
        """Return the baseline of ``class_id``; raises LookupError if there is none."""
        if not 0 <= class_id < len(self._data):
            raise IndexError(f"class id {class_id} out of range")
        data = self._data[class_id]
        if data is None:
            raise KeyError(class_id)
        return data

    def clear(self) -> None:
        self._data.clear()