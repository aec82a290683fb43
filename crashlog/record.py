"""Access to the content of a single Crash Log record."""

from __future__ import annotations

import logging
import re
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

from crashlog.header import Header, InvalidRecordTypeError
from crashlog.node import Node

_log = logging.getLogger(__name__)

_DELIMITER = ";"
_UNSIGNED = re.compile(r"\+?[0-9]+")

Layout = Union[bytes, bytearray, memoryview, str]


def _parse_unsigned(text: str) -> int:
    """Parse a non-negative decimal integer, rejecting anything else."""
    if not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    return int(text)


def _lines(text: str) -> list[str]:
    """Split ``text`` into lines on ``\\n``, dropping a final empty line and trailing ``\\r``."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


@dataclass
class Record:
    """A single Crash Log record: its decoded header and its raw bytes."""

    header: Header = field(default_factory=Header)
    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    def payload(self) -> bytes:
        """Return the record content that follows the header, without checksum."""
        begin = self.header.header_size()
        end = len(self.data) - 4 if self.header.version.cldic else len(self.data)
        return self.data[begin:end]

    def checksum(self) -> Optional[bool]:
        """Return whether the record checksum is valid, or ``None`` if it has none."""
        if not self.header.version.cldic:
            return None
        total = 0
        for start in range(0, len(self.data), 4):
            chunk = self.data[start:start + 4]
            if len(chunk) == 4:
                total += struct.unpack("<I", chunk)[0]
        return total & 0xFFFFFFFF == 0

    def read_field(self, offset: int, size: int) -> Optional[int]:
        """Read ``size`` bits starting at bit ``offset`` of the record.

        Returns ``None`` for fields wider than 64 bits or reaching past the data.
        """
        if size > 64:
            return None
        value = 0
        bit = 0
        while bit < size:
            chunk = (offset + bit) // 8
            if chunk >= len(self.data):
                return None
            bit_offset = (offset + bit) % 8
            mask = (1 << min(size - bit, 8)) - 1
            value |= ((self.data[chunk] >> bit_offset) & mask) << bit
            bit += 8 - bit_offset
        return value

    def decode_with_csv(self, layout: Layout, offset: int) -> Node:
        """Decode the record at byte ``offset`` using a semicolon-separated layout.

        The first line names the columns; ``name``, ``offset`` (bits), ``size``
        (bits) and ``description`` are used. Names are dot-separated paths, and
        a leading dot makes a path relative to the previous entry, each extra
        empty segment going up one level.

        Raises ``ValueError`` if the layout is not UTF-8 or holds a bad number.
        """
        text = layout if isinstance(layout, str) else bytes(layout).decode("utf-8")
        root = Node.root()
        columns: list[str] = []
        current_path: list[str] = []

        for index, line in enumerate(_lines(text)):
            if index == 0:
                columns = line.split(_DELIMITER)
                _log.debug("CSV columns: %s", columns)
                continue

            name = ""
            field_offset = 0
            field_size = 0
            description = ""
            for column, value in zip(columns, line.split(_DELIMITER)):
                if column == "name":
                    name = value
                elif column == "offset":
                    field_offset = _parse_unsigned(value)
                elif column == "size":
                    field_size = _parse_unsigned(value)
                elif column == "description":
                    description = value

            if not name:
                continue

            top, *segments = name.split(".")
            if top:
                current_path = [top]
                if root.get(top) is None:
                    root.add(Node.record(top))

            for segment in segments:
                if segment:
                    current_path.append(segment)
                elif current_path:
                    current_path.pop()

            node = root.create_hierarchy(current_path)
            node.description = description
            value = self.read_field(offset * 8 + field_offset, field_size)
            if value is not None:
                node.set_value(value)

        return root

    def basic_decode(self) -> Node:
        """Decode the record header into a register tree."""
        try:
            record_name = self.header.record_type()
        except InvalidRecordTypeError:
            record_name = "record"
        record = Node.record(record_name)
        record.add(self.header.to_node())

        root = Node.root()
        custom_root = self.header.root_path()
        parent = root.create_hierarchy(custom_root) if custom_root else root
        parent.add(record)
        return root