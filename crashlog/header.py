"""Headers of Crash Log records."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

from crashlog.node import Node

_log = logging.getLogger(__name__)

_TERMINATION_MARKERS = (0, 0xDEADBEEF)

Buffer = Union[bytes, bytearray, memoryview]


class CrashLogError(Exception):
    """Base class of the errors raised while handling Crash Log data."""


class InvalidHeaderError(CrashLogError):
    """A record header is truncated or malformed."""

    def __init__(self) -> None:
        super().__init__("invalid Crash Log record header")


class InvalidHeaderTypeError(CrashLogError):
    """A record header declares a header type that is not known."""

    def __init__(self, header_type: int) -> None:
        super().__init__(f"invalid Crash Log header type: {header_type}")
        self.header_type = header_type


class InvalidRecordTypeError(CrashLogError):
    """A record header declares a record type that is not known."""

    def __init__(self, record_type: int) -> None:
        super().__init__(f"invalid Crash Log record type: {record_type:#x}")
        self.record_type = record_type


class RecordType(enum.IntEnum):
    """Known Crash Log record types."""

    PMC = 0x1
    PMC_FW_TRACE = 0x2
    PUNIT = 0x3
    PCORE = 0x4
    ECORE = 0x6
    UNCORE = 0x8
    PMC_TRACE = 0x11
    TCSS = 0x16
    PMC_RST = 0x17
    PCODE = 0x19
    CRASHLOG_AGENT = 0x1C
    BOX = 0x3D
    MCA = 0x3E


_RECORD_TYPE_NAMES = {
    RecordType.PMC: "PMC",
    RecordType.PMC_FW_TRACE: "PMC_FW_Trace",
    RecordType.PUNIT: "Punit",
    RecordType.PCORE: "PCORE",
    RecordType.ECORE: "ECORE",
    RecordType.UNCORE: "UNCORE",
    RecordType.PMC_TRACE: "PMC_TRACE",
    RecordType.TCSS: "TCSS",
    RecordType.PMC_RST: "PMC_RST",
    RecordType.PCODE: "PCODE",
    RecordType.CRASHLOG_AGENT: "CRASHLOG_AGENT",
    RecordType.BOX: "BOX",
    RecordType.MCA: "MCA",
}


def _read(data: Buffer, offset: int, fmt: str) -> int:
    size = struct.calcsize(fmt)
    if len(data) < offset + size:
        raise InvalidHeaderError()
    return struct.unpack_from(fmt, data, offset)[0]


def _u32(data: Buffer, offset: int) -> int:
    return _read(data, offset, "<I")


def _u64(data: Buffer, offset: int) -> int:
    return _read(data, offset, "<Q")


@dataclass(frozen=True)
class HeaderType0:
    """Header without optional fields."""


@dataclass(frozen=True)
class HeaderType1:
    """Header without optional fields."""


@dataclass(frozen=True)
class HeaderType2:
    timestamp: int
    agent_version: int
    reason: int


@dataclass(frozen=True)
class HeaderType3:
    timestamp: int
    agent_version: int
    reason: int
    completion_status: int
    collection_complete: bool


@dataclass(frozen=True)
class HeaderType4:
    timestamp: int
    agent_version: int
    reason: int
    whoami: int
    misc: int


@dataclass(frozen=True)
class HeaderType5:
    timestamp: int
    agent_version: int
    reason: int
    completion_status: int
    collection_complete: bool
    error_status: int


@dataclass(frozen=True)
class HeaderType6:
    timestamp: int
    agent_version: int
    reason: int
    die_id: int
    socket_id: int
    completion_status_size: int
    completion_status: tuple[int, ...]
    collection_complete: bool


HeaderType = Union[
    HeaderType0,
    HeaderType1,
    HeaderType2,
    HeaderType3,
    HeaderType4,
    HeaderType5,
    HeaderType6,
]


def _common(data: Buffer) -> tuple[int, int, int]:
    return _u64(data, 8), _u32(data, 16), _u32(data, 20)


def _split_completion(cs_data: int) -> tuple[int, bool]:
    return cs_data & 0x7FFFFFFF, (cs_data >> 31) != 0


def parse_header_type(type_value: int, data: Buffer) -> HeaderType:
    """Decode the optional header fields selected by ``type_value``."""
    if type_value == 0:
        return HeaderType0()
    if type_value == 1:
        return HeaderType1()
    if type_value == 2:
        return HeaderType2(*_common(data))
    if type_value == 3:
        status, complete = _split_completion(_u32(data, 24))
        return HeaderType3(*_common(data), status, complete)
    if type_value == 4:
        return HeaderType4(*_common(data), _u32(data, 24), _u32(data, 28))
    if type_value == 5:
        timestamp, agent_version, reason = _common(data)
        status, complete = _split_completion(_u32(data, 24))
        return HeaderType5(
            timestamp, agent_version, reason, status, complete, _u32(data, 28)
        )
    if type_value == 6:
        timestamp, agent_version, reason = _common(data)
        if len(data) < 28:
            raise InvalidHeaderError()
        die_id = data[24]
        socket_id = data[25]
        status_size = _read(data, 26, "<H") & 0x7F
        complete = (data[27] & 0x80) != 0
        statuses = tuple(_u32(data, 28 + dword * 4) for dword in range(status_size))
        return HeaderType6(
            timestamp,
            agent_version,
            reason,
            die_id,
            socket_id,
            status_size,
            statuses,
            complete,
        )
    raise InvalidHeaderTypeError(type_value)


@dataclass
class Version:
    """Version dword of a Crash Log record."""

    revision: int = 0
    header_type: int = 0
    product_id: int = 0
    record_type: int = 0
    consumed: bool = False
    cldic: bool = False

    @classmethod
    def from_bytes(cls, data: Buffer) -> Optional["Version"]:
        """Decode the version, or return ``None`` on a termination marker."""
        if len(data) < 4:
            return None
        version = struct.unpack_from("<I", data, 0)[0]
        _log.debug("Decoding record version: %#x", version)
        if version in _TERMINATION_MARKERS:
            return None
        return cls(
            revision=version & 0xFF,
            header_type=(version >> 8) & 0xF,
            product_id=(version >> 12) & 0xFFF,
            record_type=(version >> 24) & 0x3F,
            consumed=bool((version >> 31) & 1),
            cldic=bool((version >> 30) & 1),
        )

    def as_int(self) -> int:
        """Return the raw version dword."""
        return (
            (int(self.consumed) << 31)
            | (int(self.cldic) << 30)
            | (self.record_type << 24)
            | (self.product_id << 12)
            | (self.header_type << 8)
            | self.revision
        )

    def record_type_name(self) -> str:
        """Return the name of the record type."""
        try:
            return _RECORD_TYPE_NAMES[RecordType(self.record_type)]
        except ValueError:
            raise InvalidRecordTypeError(self.record_type) from None

    def to_node(self) -> Node:
        """Return the version as a register tree field."""
        node = Node.field("version", self.as_int())
        node.add(Node.field("revision", self.revision))
        node.add(Node.field("header_type", self.header_type))
        node.add(Node.field("product_id", self.product_id))
        node.add(Node.field("record_type", self.record_type))
        return node

    def __str__(self) -> str:
        try:
            name = self.record_type_name()
        except InvalidRecordTypeError:
            name = "UNKNOWN"
        return f"{name} revision {self.revision}"


@dataclass
class RecordSize:
    """Size of a record, in units that depend on the record type."""

    record_size: int = 0
    extended_record_size: int = 0

    @classmethod
    def from_bytes(cls, data: Buffer) -> Optional["RecordSize"]:
        """Decode the size fields, or return ``None`` if the data is too short."""
        if len(data) < 8:
            return None
        record_size, extended = struct.unpack_from("<HH", data, 4)
        return cls(record_size=record_size, extended_record_size=extended)

    def to_node(self) -> Node:
        """Return the size fields as a register tree section."""
        node = Node.section("record_size")
        node.add(Node.field("record_size", self.record_size))
        node.add(Node.field("extended_record_size", self.extended_record_size))
        return node


@dataclass
class Header:
    """Header of a Crash Log record."""

    version: Version = field(default_factory=Version)
    size: RecordSize = field(default_factory=RecordSize)
    header_type: HeaderType = field(default_factory=HeaderType1)

    @classmethod
    def from_bytes(cls, data: Buffer) -> Optional["Header"]:
        """Decode a record header, or return ``None`` on a termination marker."""
        version = Version.from_bytes(data)
        if version is None:
            return None
        size = RecordSize.from_bytes(data)
        if size is None:
            raise InvalidHeaderError()
        header_type = parse_header_type(version.header_type, data)
        return cls(version=version, size=size, header_type=header_type)

    def _granularity(self) -> int:
        record_type = self.version.record_type
        if record_type == RecordType.ECORE:
            return 1
        if record_type == RecordType.PCORE and self.version.product_id < 0x71:
            return 1
        return 4

    def record_size(self) -> int:
        """Return the size of the whole record in bytes."""
        return (
            self.size.record_size + self.size.extended_record_size
        ) * self._granularity()

    def extended_record_offset(self) -> Optional[int]:
        """Return the byte offset of the extended record, if there is one."""
        if self.size.extended_record_size > 0:
            return self.size.record_size * self._granularity()
        return None

    def revision(self) -> int:
        return self.version.revision

    def product_id(self) -> int:
        return self.version.product_id

    def socket_id(self) -> int:
        """Return the socket that produced the record (0 when not recorded)."""
        if isinstance(self.header_type, HeaderType6):
            return self.header_type.socket_id
        return 0

    def die_id(self) -> Optional[int]:
        """Return the die that produced the record, if recorded."""
        if isinstance(self.header_type, HeaderType6):
            return self.header_type.die_id
        return None

    def record_type(self) -> str:
        """Return the name of the record type."""
        return self.version.record_type_name()

    def header_size(self) -> int:
        """Return the size of the header in bytes."""
        match self.header_type:
            case HeaderType0() | HeaderType1():
                return 8
            case HeaderType2():
                return 24
            case HeaderType3():
                return 28
            case HeaderType4() | HeaderType5():
                return 32
            case HeaderType6(completion_status_size=status_size):
                return 28 + status_size * 4
        raise InvalidHeaderError()

    def root_path(self) -> Optional[str]:
        """Return the tree path under which the record belongs, if any."""
        if isinstance(self.header_type, HeaderType6):
            ht = self.header_type
            return f"processors.cpu{ht.socket_id}.die{ht.die_id}"
        return None

    def to_node(self) -> Node:
        """Return the header as a register tree section."""
        node = Node.section("hdr")
        node.add(self.version.to_node())
        node.add(self.size.to_node())

        ht = self.header_type
        if isinstance(
            ht, (HeaderType2, HeaderType3, HeaderType4, HeaderType5, HeaderType6)
        ):
            node.add(Node.field("timestamp", ht.timestamp))
            node.add(Node.field("agent_version", ht.agent_version))
            node.add(Node.field("reason", ht.reason))

        if isinstance(ht, HeaderType4):
            node.add(Node.field("whoami", ht.whoami))
            node.add(Node.field("misc", ht.misc))
        if isinstance(ht, HeaderType5):
            node.add(Node.field("error_status", ht.error_status))
        if isinstance(ht, (HeaderType3, HeaderType5)):
            status = Node.section("completion_status")
            status.add(Node.field("completion_status", ht.completion_status))
            status.add(
                Node.field("record_collection_completed", int(ht.collection_complete))
            )
            node.add(status)
        if isinstance(ht, HeaderType6):
            info = Node.section("die_skt_info")
            info.add(Node.field("die_id", ht.die_id))
            info.add(Node.field("socket_id", ht.socket_id))
            info.add(Node.field("completion_status_size", ht.completion_status_size))
            info.add(
                Node.field("record_collection_completed", int(ht.collection_complete))
            )
            node.add(info)
            for index, value in enumerate(ht.completion_status):
                node.add(Node.field(f"completion_status{index}", value))

        return node

    def __str__(self) -> str:
        try:
            name = self.record_type()
        except InvalidRecordTypeError:
            name = "RECORD"
        version = (
            f"product_id=0x{self.version.product_id:x}, "
            f"record_type=0x{self.version.record_type:x}, "
            f"revision=0x{self.version.revision:x}"
        )
        if isinstance(self.header_type, HeaderType6):
            extra = (
                f"die_id={self.header_type.die_id}, "
                f"socket_id={self.header_type.socket_id}"
            )
        else:
            extra = ".."
        return f"{name} - ({version}, {extra})"