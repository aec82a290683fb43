# crashlog

A pure-Python library for reading Crash Log data. It splits a raw Crash Log
region into records, decodes the record headers, reads bit fields from record
data with a semicolon-separated decode definition, and builds a register tree
that can be walked, merged and exported to JSON.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

## Modules

- `crashlog.region`: `Region`, a sequence of records read from a raw region.
- `crashlog.record`: `Record`, one record with its header and raw bytes.
- `crashlog.header`: `Header`, `Version`, `RecordSize`, the header type
  classes `HeaderType0` to `HeaderType6`, `RecordType`, `parse_header_type`,
  and the errors `CrashLogError`, `InvalidHeaderError`,
  `InvalidHeaderTypeError` and `InvalidRecordTypeError`.
- `crashlog.node`: `Node` and `NodeType`, the register tree.
- `crashlog.metadata`: `Metadata` and `Time`, where and when a Crash Log was
  taken.

## Usage

### Reading a region

```python
from crashlog.region import Region

with open("dump.crashlog", "rb") as fh:
    region = Region.from_bytes(fh.read())

for record in region.records:
    print(record.header)       # e.g. "MCA - (product_id=0x7a, record_type=0x3e, revision=0x1, ..)"
    print(record.checksum())   # True, False, or None when the record carries no checksum
    print(len(record.payload()))
```

`Region.from_bytes` stops at a termination marker, at a record of size zero,
or at a header it cannot decode; in the last case it raises the header error
only when no record was read. A record running past the end of the data is
kept truncated. `Region.to_bytes()` gives back the concatenated raw records.

### Decoding headers

```python
from crashlog.header import Header

header = Header.from_bytes(bytes([0x08, 0xA1, 0x07, 0x3E, 0x02, 0x00, 0x00, 0x00]))
header.record_type()   # "MCA"
header.record_size()   # 8
header.revision()      # 8
header.product_id()    # 0x7A
```

`Header.from_bytes` returns `None` on a termination marker (a version dword
of `0` or `0xdeadbeef`) and raises a subclass of
`crashlog.header.CrashLogError` when the header is malformed or of an unknown
header type. `Header.record_type()` raises `InvalidRecordTypeError` for an
unknown record type. Type 6 headers also give `die_id()`, `socket_id()` and
`root_path()` (`"processors.cpu<socket>.die<die>"`).

### Register trees

```python
root = region.records[0].basic_decode()
root.get_by_path("mca.hdr.version").value
print(root.to_json())
```

`basic_decode()` turns the record header into a tree. `Node.to_json_value()`
gives the JSON-ready form: field values as hex strings, a field with children
as an object with a `"_value"` entry, and the root wrapped in
`"crashlog_data"`. `Node.merge` merges sections recursively and keeps
clashing records and fields side by side as `name0`, `name1`, and so on.

Records can also be decoded with a semicolon-separated decode definition
holding `name`, `offset` (bits), `size` (bits) and `description` columns:

```python
from crashlog.header import Header
from crashlog.record import Record

record = Record(header=Header(), data=bytes([0x42]))
layout = b"name;offset;size;description\nfoo.bar;0;8;"
tree = record.decode_with_csv(layout, 0)
tree.get_by_path("foo.bar").kind    # NodeType.FIELD
tree.get_by_path("foo.bar").value   # 0x42
```

A name starting with a dot is relative to the previous entry, and each
further empty segment goes up one level. Fields wider than 64 bits, or
reaching past the record data, are created without a value. A layout that is
not UTF-8 or holds a bad number raises `ValueError`.

### Metadata

```python
from crashlog.metadata import Metadata, Time

str(Metadata(computer="host", time=Time(2025, 1, 2, 3, 4)))  # "host-2025-01-02-03-04"
str(Metadata())                                              # "unnamed"
```

## What it does not do

- It reads regions of raw records only; it does not unwrap boot error record
  tables or error record dumps around them.
- It does not read Crash Logs from the running system.
- It holds no product-specific decode definitions: beyond the headers,
  records are decoded only with a layout you supply to `decode_with_csv`.
- It has no command-line program.

## Running the tests

```
pip install .[test]
pytest
```