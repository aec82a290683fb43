import struct

import pytest

from crashlog.header import Header, RecordSize, Version
from crashlog.node import Node, NodeType
from crashlog.record import Record

SIXTEEN_BYTES = bytes(range(0x80, 0x90))


def make_record(data=SIXTEEN_BYTES):
    return Record(header=Header(), data=data)


def test_basic_decode_csv():
    record = make_record()
    csv = (
        "name;offset;size;description;bitfield\n"
        "foo;0;128;;0\n"
        "foo.bar.baz;4;64;;0\n"
        "foo.bar;4;8;;0"
    )
    root = record.decode_with_csv(csv.encode(), 0)
    assert root.get_by_path("foo").kind is NodeType.RECORD
    bar = root.get_by_path("foo.bar")
    assert bar.kind is NodeType.FIELD
    assert bar.value == 0x18
    baz = root.get_by_path("foo.bar.baz")
    assert baz.kind is NodeType.FIELD
    assert baz.value >> 32 == 0x88786858
    assert baz.value & 0xFFFFFFFF == 0x48382818


def test_single_byte_doc_example():
    record = make_record(b"\x42")
    csv = "name;offset;size;description;bitfield\nfoo.bar;0;8;;0"
    root = record.decode_with_csv(csv.encode(), 0)
    assert root.get_by_path("foo.bar").value == 0x42


def test_relative_paths():
    record = make_record()
    csv = (
        "name;offset;size;description;bitfield\n"
        "foo;0;128;;0\n"
        ".aaa;8;8;;0\n"
        ".bbb;16;8;;0\n"
        "..ccc;24;8;;0\n"
        "foo.ddd.eee;32;8;;0\n"
        "...ddd;40;8;;0\n"
        "..fff;48;8;;0"
    )
    root = record.decode_with_csv(csv.encode(), 0)
    assert root.get_by_path("foo").kind is NodeType.RECORD
    assert root.get_by_path("foo.aaa").value == 0x81
    assert root.get_by_path("foo.aaa.bbb").value == 0x82
    assert root.get_by_path("foo.aaa.ccc").value == 0x83
    assert root.get_by_path("foo.ddd.eee").value == 0x84
    assert root.get_by_path("foo.ddd").value == 0x85
    assert root.get_by_path("foo.fff").value == 0x86


def test_invalid_offset_raises():
    record = make_record(bytes(range(0x80, 0x88)))
    csv = "name;offset;size;description;bitfield\nfoo;0;64;;0\nfoo.bar;=2+2;8;;0"
    with pytest.raises(ValueError):
        record.decode_with_csv(csv.encode(), 0)


def test_invalid_utf8_raises():
    with pytest.raises(ValueError):
        make_record().decode_with_csv(b"name\n\xff\xfe", 0)


def test_unknown_columns_yield_empty_root():
    record = make_record(bytes(range(0x80, 0x88)))
    root = record.decode_with_csv(b"fullname;size;offset\naaa;4;8\n", 0)
    assert root == Node.root()


def test_missing_offset_column_value_defaults_to_zero():
    record = make_record(bytes(range(0x80, 0x88)))
    root = record.decode_with_csv(b"name;size;offset\nfoo.bar;8\n", 0)
    assert root.get_by_path("foo.bar").value == 0x80


def test_leading_dots_past_top_are_ignored():
    record = make_record(bytes(range(0x80, 0x88)))
    root = record.decode_with_csv(b"name;size;offset;size\n....foo.bar;8;0\n", 0)
    assert root.get_by_path("foo.bar").value == 0x80


def test_byte_offset_is_applied():
    record = make_record()
    root = record.decode_with_csv(b"name;offset;size\nfoo;0;8\n", 2)
    assert root.get_by_path("foo").value == 0x82


def test_description_is_kept():
    root = make_record().decode_with_csv(
        "name;offset;size;description\nfoo.bar;0;8;a register\n", 0
    )
    assert root.get_by_path("foo.bar").description == "a register"


def test_read_field_limits():
    record = make_record(b"\xab\xcd")
    assert record.read_field(0, 65) is None
    assert record.read_field(8, 16) is None
    assert record.read_field(0, 0) == 0
    assert record.read_field(4, 8) == 0xDA
    assert record.read_field(0, 16) == 0xCDAB


def test_checksum_absent_without_cldic():
    assert make_record().checksum() is None


def test_checksum_valid_and_invalid():
    header = Header(version=Version(cldic=True))
    good = struct.pack("<II", 0x12345678, (-0x12345678) & 0xFFFFFFFF)
    assert Record(header=header, data=good).checksum() is True
    bad = struct.pack("<II", 0x12345678, 1)
    assert Record(header=header, data=bad).checksum() is False


def test_payload_strips_header_and_checksum():
    data = bytes(range(16))
    assert Record(header=Header(), data=data).payload() == data[8:]
    header = Header(version=Version(cldic=True))
    assert Record(header=header, data=data).payload() == data[8:12]


def test_basic_decode_header():
    data = bytes([0x08, 0xA1, 0x07, 0x3E, 0x2, 0x0, 0x0, 0x0])
    record = Record(header=Header.from_bytes(data), data=data)
    root = record.basic_decode()
    assert root.get_by_path("mca.hdr.version.product_id").value == 0x7A
    assert root.get_by_path("mca.hdr.record_size.record_size").value == 2
    assert root.get_by_path("mca").kind is NodeType.RECORD


def test_basic_decode_unknown_record_type():
    header = Header(
        version=Version(record_type=0x3F), size=RecordSize(record_size=1)
    )
    root = Record(header=header, data=b"\0\0\0\0").basic_decode()
    assert root.get_by_path("record.hdr.version.record_type").value == 0x3F


def test_basic_decode_type6_root_path():
    data = (
        struct.pack("<IHH", 0x3E07A602, 7, 0)
        + struct.pack("<QII", 0, 0, 0)
        + bytes([1, 0, 0, 0])
    )
    record = Record(header=Header.from_bytes(data), data=data)
    root = record.basic_decode()
    die_id = root.get_by_path("processors.cpu0.die1.mca.hdr.die_skt_info.die_id")
    assert die_id.value == 1
    revision = root.get_by_path("processors.cpu0.die1.mca.hdr.version.revision")
    assert revision.value == 2