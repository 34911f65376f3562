"""NTFS attribute parsing."""

import struct
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from .constants import (
    ATTR_END, EPOCH_DIFF,
    FILE_ATTR_READONLY, FILE_ATTR_HIDDEN, FILE_ATTR_SYSTEM,
    FILE_ATTR_DIRECTORY, FILE_ATTR_ARCHIVE, FILE_ATTR_DEVICE,
    FILE_ATTR_NORMAL, FILE_ATTR_TEMPORARY, FILE_ATTR_SPARSE_FILE,
    FILE_ATTR_REPARSE_POINT, FILE_ATTR_COMPRESSED, FILE_ATTR_OFFLINE,
    FILE_ATTR_NOT_CONTENT_INDEXED, FILE_ATTR_ENCRYPTED,
    IO_REPARSE_TAG_MOUNT_POINT, IO_REPARSE_TAG_SYMLINK
)
from .data_runs import DataRun, decode_data_runs

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ntfs_to_datetime(ntfs_time: int) -> Optional[datetime]:
    """Convert an NTFS timestamp (100ns intervals since 1601-01-01) to UTC.

    Zero and out-of-range values give None.
    """
    if ntfs_time == 0:
        return None
    seconds, ticks = divmod(ntfs_time, 10000000)
    try:
        return UNIX_EPOCH + timedelta(seconds=seconds - EPOCH_DIFF,
                                      microseconds=ticks // 10)
    except OverflowError:
        return None


def _utf16(raw: bytes) -> Optional[str]:
    try:
        return raw.decode('utf-16-le')
    except UnicodeDecodeError:
        return None


def _value_offset(attr: bytes) -> int:
    return struct.unpack_from('<H', attr, 20)[0]


@dataclass
class FileAttributes:
    """Decoded $STANDARD_INFORMATION file attribute flags."""
    readonly: bool
    hidden: bool
    system: bool
    directory: bool
    archive: bool
    device: bool
    normal: bool
    temporary: bool
    sparse_file: bool
    reparse_point: bool
    compressed: bool
    offline: bool
    not_content_indexed: bool
    encrypted: bool

    @classmethod
    def from_flags(cls, flags: int) -> 'FileAttributes':
        return cls(
            readonly=bool(flags & FILE_ATTR_READONLY),
            hidden=bool(flags & FILE_ATTR_HIDDEN),
            system=bool(flags & FILE_ATTR_SYSTEM),
            directory=bool(flags & FILE_ATTR_DIRECTORY),
            archive=bool(flags & FILE_ATTR_ARCHIVE),
            device=bool(flags & FILE_ATTR_DEVICE),
            normal=bool(flags & FILE_ATTR_NORMAL),
            temporary=bool(flags & FILE_ATTR_TEMPORARY),
            sparse_file=bool(flags & FILE_ATTR_SPARSE_FILE),
            reparse_point=bool(flags & FILE_ATTR_REPARSE_POINT),
            compressed=bool(flags & FILE_ATTR_COMPRESSED),
            offline=bool(flags & FILE_ATTR_OFFLINE),
            not_content_indexed=bool(flags & FILE_ATTR_NOT_CONTENT_INDEXED),
            encrypted=bool(flags & FILE_ATTR_ENCRYPTED),
        )


@dataclass
class AttributeHeader:
    """Common header shared by resident and non-resident attributes."""
    attr_type: int
    length: int
    non_resident: bool
    name: Optional[str] = None


def parse_attribute_header(record: bytes, offset: int) -> Optional[AttributeHeader]:
    """
    Parse the attribute header at offset.

    Returns None at the end marker, on a zero length, or when the
    attribute would run past the end of the record.
    """
    if offset + 16 > len(record):
        return None

    attr_type, length = struct.unpack_from('<II', record, offset)
    if attr_type == ATTR_END:
        return None
    if length == 0 or offset + length > len(record):
        return None

    non_resident = record[offset + 8] != 0
    name_len = record[offset + 9]
    name_offset = struct.unpack_from('<H', record, offset + 10)[0]

    name = None
    start = offset + name_offset
    if name_len > 0 and start + name_len * 2 <= len(record):
        name = _utf16(bytes(record[start:start + name_len * 2]))

    return AttributeHeader(attr_type, length, non_resident, name)


@dataclass
class StandardInformation:
    """$STANDARD_INFORMATION attribute (0x10)."""
    created: datetime
    modified: datetime
    mft_modified: datetime
    accessed: datetime
    file_attributes: FileAttributes
    owner_id: Optional[int] = None
    security_id: Optional[int] = None
    usn: Optional[int] = None


def parse_standard_information(attr: bytes) -> Optional[StandardInformation]:
    """Parse $STANDARD_INFORMATION. Any unset timestamp voids the attribute."""
    if len(attr) < 24:
        return None
    value_offset = _value_offset(attr)
    if value_offset + 48 > len(attr):
        return None

    c = attr[value_offset:]
    times = [ntfs_to_datetime(t) for t in struct.unpack_from('<QQQQ', c, 0)]
    if any(t is None for t in times):
        return None

    flags = struct.unpack_from('<I', c, 32)[0]
    info = StandardInformation(*times, file_attributes=FileAttributes.from_flags(flags))

    # Owner, security and USN fields exist from NTFS 3.0 on
    if len(c) >= 56:
        info.owner_id, info.security_id = struct.unpack_from('<II', c, 48)
    if len(c) >= 72:
        info.usn = struct.unpack_from('<Q', c, 64)[0]

    return info


@dataclass
class FileName:
    """$FILE_NAME attribute (0x30)."""
    name: str
    parent_ref: int
    namespace: int
    allocated_size: int
    real_size: int

    @property
    def parent_record(self) -> int:
        # Low 48 bits = record number, high 16 bits = sequence
        return self.parent_ref & 0xFFFFFFFFFFFF

    @property
    def parent_sequence(self) -> int:
        return (self.parent_ref >> 48) & 0xFFFF


def parse_file_name(attr: bytes) -> Optional[FileName]:
    if len(attr) < 66:
        return None
    value_offset = _value_offset(attr)
    if value_offset + 66 > len(attr):
        return None

    c = attr[value_offset:]
    parent_ref = struct.unpack_from('<Q', c, 0)[0]
    allocated_size, real_size = struct.unpack_from('<QQ', c, 40)
    name_len = c[64]
    namespace = c[65]

    if 66 + name_len * 2 > len(c):
        return None
    name = _utf16(bytes(c[66:66 + name_len * 2]))
    if name is None:
        return None

    return FileName(name, parent_ref, namespace, allocated_size, real_size)


@dataclass
class DataStream:
    """A named or unnamed $DATA stream (0x80)."""
    name: Optional[str]
    resident: bool
    size: int
    allocated_size: int
    resident_data: Optional[str] = None
    data_runs: Optional[List[DataRun]] = None


def parse_resident_value(attr: bytes) -> Optional[bytes]:
    if len(attr) < 24:
        return None
    value_len = struct.unpack_from('<I', attr, 16)[0]
    value_offset = _value_offset(attr)
    if value_offset + value_len > len(attr):
        return None
    return bytes(attr[value_offset:value_offset + value_len])


def parse_data_attribute(attr: bytes, name: Optional[str],
                         non_resident: bool) -> Optional[DataStream]:
    if non_resident:
        if len(attr) < 64:
            return None
        runs_offset = struct.unpack_from('<H', attr, 32)[0]
        allocated_size, real_size = struct.unpack_from('<QQ', attr, 40)

        runs = None
        if runs_offset < len(attr):
            runs = decode_data_runs(bytes(attr[runs_offset:])) or None

        return DataStream(name, False, real_size, allocated_size, data_runs=runs)

    value = parse_resident_value(attr)
    if value is None:
        return None
    try:
        text = value.decode('utf-8')
    except UnicodeDecodeError:
        text = None
    return DataStream(name, True, len(value), len(value), resident_data=text)


def parse_object_id(attr: bytes) -> Optional[str]:
    """GUID from $OBJECT_ID (0x40) in canonical form."""
    if len(attr) < 24:
        return None
    value_offset = _value_offset(attr)
    if value_offset + 16 > len(attr):
        return None
    return str(uuid.UUID(bytes_le=bytes(attr[value_offset:value_offset + 16])))


def parse_reparse_point(attr: bytes) -> Optional[Tuple[int, Optional[str]]]:
    """
    Parse $REPARSE_POINT (0xC0).

    Returns:
        (tag, target) where target is the substitute name for symlinks and
        mount points, otherwise None
    """
    if len(attr) < 24:
        return None
    value_offset = _value_offset(attr)
    if value_offset + 8 > len(attr):
        return None

    c = attr[value_offset:]
    tag = struct.unpack_from('<I', c, 0)[0]

    # Symlink buffers carry an extra 4-byte flags field before the path
    if tag == IO_REPARSE_TAG_SYMLINK:
        path_buffer = 20
    elif tag == IO_REPARSE_TAG_MOUNT_POINT:
        path_buffer = 16
    else:
        return tag, None

    if len(c) < path_buffer:
        return tag, None

    sub_offset, sub_len = struct.unpack_from('<HH', c, 8)
    start = path_buffer + sub_offset
    end = start + sub_len
    if end > len(c):
        return tag, None
    return tag, _utf16(bytes(c[start:end]))
