"""MFT record carving and parsing."""

import struct
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

from .attributes import (
    FileAttributes, DataStream, FileName,
    parse_attribute_header, parse_standard_information, parse_file_name,
    parse_data_attribute, parse_object_id, parse_reparse_point
)
from .constants import (
    MFT_RECORD_SIZE, FILE_SIGNATURE, SECTOR_SIZE, SCAN_ALIGNMENT,
    MFT_RECORD_IN_USE, MFT_RECORD_IS_DIRECTORY,
    ATTR_STANDARD_INFORMATION, ATTR_FILE_NAME, ATTR_OBJECT_ID, ATTR_DATA,
    ATTR_REPARSE_POINT, ATTR_EA_INFORMATION,
    FILENAME_POSIX, FILENAME_WIN32, FILENAME_WIN32_AND_DOS
)


@dataclass
class AlternateFilename:
    name: str
    namespace: int


@dataclass
class NtfsEntry:
    """Everything recovered from one MFT record."""
    mft_offset: int
    mft_record_number: int
    sequence_number: int
    hardlink_count: int
    is_in_use: bool
    is_directory: bool

    # Main filename (Win32/POSIX preferred over DOS)
    filename: str
    parent_mft_record: int
    parent_sequence: int
    allocated_size: int
    real_size: int

    # $STANDARD_INFORMATION
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    mft_modified: Optional[datetime] = None
    accessed: Optional[datetime] = None
    file_attributes: Optional[FileAttributes] = None
    owner_id: Optional[int] = None
    security_id: Optional[int] = None
    usn: Optional[int] = None

    object_id: Optional[str] = None
    alternate_filenames: List[AlternateFilename] = field(default_factory=list)
    data_streams: List[DataStream] = field(default_factory=list)
    reparse_tag: Optional[int] = None
    reparse_target: Optional[str] = None
    has_extended_attributes: bool = False

    def to_dict(self) -> dict:
        """JSON-ready dict; timestamps become ISO 8601 UTC strings."""
        result = asdict(self)
        for key in ('created', 'modified', 'mft_modified', 'accessed'):
            value = result[key]
            if value is not None:
                result[key] = value.isoformat().replace('+00:00', 'Z')
        return result


def apply_fixups(record: bytes) -> bytes:
    """
    Restore the sector-end bytes saved in the update sequence array.

    The record is returned unchanged if the array is out of bounds or a
    sector end does not carry the update sequence number.
    """
    usa_offset, usa_count = struct.unpack_from('<HH', record, 4)
    if usa_count < 2 or usa_offset + usa_count * 2 > len(record):
        return record
    if (usa_count - 1) * SECTOR_SIZE > len(record):
        return record

    fixed = bytearray(record)
    usn = record[usa_offset:usa_offset + 2]
    for i in range(1, usa_count):
        sector_end = i * SECTOR_SIZE - 2
        if record[sector_end:sector_end + 2] != usn:
            return record
        saved = usa_offset + i * 2
        fixed[sector_end:sector_end + 2] = record[saved:saved + 2]
    return bytes(fixed)


def _main_name_index(names: List[FileName]) -> int:
    for i, fn in enumerate(names):
        if fn.namespace in (FILENAME_WIN32, FILENAME_WIN32_AND_DOS):
            return i
    for i, fn in enumerate(names):
        if fn.namespace == FILENAME_POSIX:
            return i
    return 0


def parse_record(buffer, offset: int,
                 record_size: int = MFT_RECORD_SIZE) -> Optional[NtfsEntry]:
    """
    Parse the MFT record starting at offset.

    Returns None if there is no FILE signature, the record does not fit in
    the buffer, or the record carries no $FILE_NAME.
    """
    if buffer[offset:offset + 4] != FILE_SIGNATURE:
        return None
    if offset + record_size > len(buffer):
        return None

    record = apply_fixups(bytes(buffer[offset:offset + record_size]))

    sequence, hardlinks, first_attr, flags = struct.unpack_from('<HHHH', record, 16)
    record_num = struct.unpack_from('<I', record, 44)[0]

    names: List[FileName] = []
    streams: List[DataStream] = []
    std_info = None
    object_id = None
    reparse = None
    has_ea = False

    pos = first_attr
    while True:
        header = parse_attribute_header(record, pos)
        if header is None:
            break
        attr = record[pos:pos + header.length]

        if header.attr_type == ATTR_FILE_NAME:
            fn = parse_file_name(attr)
            if fn:
                names.append(fn)
        elif header.attr_type == ATTR_DATA:
            stream = parse_data_attribute(attr, header.name, header.non_resident)
            if stream:
                streams.append(stream)
        elif header.attr_type == ATTR_STANDARD_INFORMATION:
            if std_info is None:
                std_info = parse_standard_information(attr)
        elif header.attr_type == ATTR_OBJECT_ID:
            if object_id is None:
                object_id = parse_object_id(attr)
        elif header.attr_type == ATTR_REPARSE_POINT:
            if reparse is None:
                reparse = parse_reparse_point(attr)
        elif header.attr_type == ATTR_EA_INFORMATION:
            has_ea = True

        pos += header.length

    if not names:
        return None

    main = names.pop(_main_name_index(names))

    entry = NtfsEntry(
        mft_offset=offset,
        mft_record_number=record_num,
        sequence_number=sequence,
        hardlink_count=hardlinks,
        is_in_use=bool(flags & MFT_RECORD_IN_USE),
        is_directory=bool(flags & MFT_RECORD_IS_DIRECTORY),
        filename=main.name,
        parent_mft_record=main.parent_record,
        parent_sequence=main.parent_sequence,
        allocated_size=main.allocated_size,
        real_size=main.real_size,
        object_id=object_id,
        alternate_filenames=[AlternateFilename(fn.name, fn.namespace) for fn in names],
        data_streams=streams,
        has_extended_attributes=has_ea,
    )

    if std_info:
        entry.created = std_info.created
        entry.modified = std_info.modified
        entry.mft_modified = std_info.mft_modified
        entry.accessed = std_info.accessed
        entry.file_attributes = std_info.file_attributes
        entry.owner_id = std_info.owner_id
        entry.security_id = std_info.security_id
        entry.usn = std_info.usn

    if reparse:
        entry.reparse_tag, entry.reparse_target = reparse

    return entry


def scan_image(buffer, record_size: int = MFT_RECORD_SIZE) -> Iterator[NtfsEntry]:
    """
    Carve MFT records out of a raw image.

    Every 8-byte aligned FILE signature is tried as the start of a record,
    so records are found wherever they sit, including outside the $MFT.
    """
    end = len(buffer) - 4
    pos = 0
    while pos < end:
        idx = buffer.find(FILE_SIGNATURE, pos)
        if idx == -1 or idx >= end:
            break
        if idx % SCAN_ALIGNMENT:
            pos = idx + 1
            continue

        entry = parse_record(buffer, idx, record_size)
        if entry is not None:
            yield entry
        pos = idx + SCAN_ALIGNMENT
