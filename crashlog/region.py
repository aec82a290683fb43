"""Access to the records stored in a Crash Log region."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from crashlog.header import CrashLogError, Header, InvalidRecordTypeError
from crashlog.record import Record

_log = logging.getLogger(__name__)


@dataclass
class Region:
    """A contiguous sequence of Crash Log records."""

    records: list[Record] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, memoryview]) -> "Region":
        """Split a raw region into its records.

        Stops at a termination marker, an empty record or an undecodable
        header; the header error is raised only if no record was read.
        """
        region = cls()
        view = memoryview(bytes(data))
        cursor = 0

        while cursor < len(view):
            try:
                header = Header.from_bytes(view[cursor:])
            except CrashLogError as error:
                _log.warning("Cannot decode record header: %s", error)
                if not region.records:
                    raise
                break
            if header is None:
                _log.debug("Found termination marker at offset %d", cursor)
                break

            _log.debug("Record version: %s", header)
            record_size = header.record_size()
            _log.debug("Record size: 0x%04x", record_size)

            if record_size == 0:
                try:
                    name = header.record_type()
                except InvalidRecordTypeError:
                    name = "UNKNOWN"
                _log.warning("%s record has an empty size. Skipping.", name)
                break

            limit = cursor + record_size
            if limit > len(view):
                _log.warning(
                    "Truncated record detected: record is expected to be %dB but is %dB",
                    record_size,
                    len(view) - cursor,
                )

            region.records.append(
                Record(header=header, data=bytes(view[cursor:min(limit, len(view))]))
            )
            cursor += record_size

        return region

    def to_bytes(self) -> bytes:
        """Return the raw bytes of all records, concatenated."""
        return b"".join(record.data for record in self.records)