"""NTFS data run decoding."""

from dataclasses import dataclass
from typing import List


@dataclass
class DataRun:
    """A contiguous extent: absolute starting LCN and its length in clusters."""
    cluster_offset: int
    cluster_count: int


def decode_data_runs(data: bytes) -> List[DataRun]:
    """
    Decode NTFS mapping pairs into absolute extents.

    Each run is encoded as:
    - 1 byte header: high nibble = LCN offset bytes, low nibble = length bytes
    - N bytes for run length (unsigned)
    - M bytes for LCN offset (signed, relative to previous LCN)

    A run with no offset bytes is sparse and keeps the previous LCN.
    Decoding stops at the 0x00 terminator, at a malformed header, or at a
    run that would read past the end of data.

    Args:
        data: Encoded data runs bytes

    Returns:
        List of DataRun, empty if nothing decodes
    """
    runs = []
    pos = 0
    prev_lcn = 0

    while pos < len(data):
        header = data[pos]
        if header == 0:
            break

        len_bytes = header & 0x0F
        off_bytes = (header >> 4) & 0x0F

        if len_bytes == 0 or len_bytes > 8 or off_bytes > 8:
            break

        pos += 1
        if pos + len_bytes + off_bytes > len(data):
            break

        # Read length (unsigned)
        length = int.from_bytes(data[pos:pos + len_bytes], 'little', signed=False)
        pos += len_bytes

        # Read LCN offset (signed)
        lcn_offset = int.from_bytes(data[pos:pos + off_bytes], 'little', signed=True)
        pos += off_bytes

        lcn = prev_lcn + lcn_offset
        runs.append(DataRun(cluster_offset=lcn, cluster_count=length))
        prev_lcn = lcn

    return runs
