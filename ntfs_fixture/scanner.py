"""Scan a raw NTFS image for MFT records and write them as NDJSON.

Usage:
    python3 -m ntfs_fixture.scanner --input image.raw --output entries.ndjson
"""
import argparse
import fcntl
import json
import mmap
import os
import sys

from .mft import scan_image

GIB = 1024 * 1024 * 1024
PROGRESS_INTERVAL = 1000


def log(msg):
    print(f"[Scanner] {msg}", flush=True)


def write_entries(buffer, out) -> int:
    """Write one JSON line per carved record. Returns the record count."""
    count = 0
    for entry in scan_image(buffer):
        out.write(json.dumps(entry.to_dict(), ensure_ascii=False))
        out.write('\n')
        count += 1

        if count % PROGRESS_INTERVAL == 0:
            log(f"Processed {count} file entries. Last file position: "
                f"{entry.mft_offset} = {entry.mft_offset / GIB:.3f} GiB")
    return count


def scan_file(input_path: str, output_path: str) -> int:
    """
    Scan input_path and write NDJSON to output_path.

    The input is held under a shared advisory lock while it is mapped, so
    cooperating writers cannot truncate it mid-scan.
    """
    with open(input_path, 'rb') as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_SH)
        size = os.fstat(f.fileno()).st_size

        with open(output_path, 'w', encoding='utf-8') as out:
            if size == 0:
                return 0

            with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as buffer:
                if hasattr(buffer, 'madvise'):
                    buffer.madvise(mmap.MADV_SEQUENTIAL)
                log("Starting to process NTFS image's file entries.")
                count = write_entries(buffer, out)

    log(f"Processed a total of {count} file entries.")
    return count


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='NTFS filesystem recovery/forensics tool: carve MFT records to NDJSON'
    )
    parser.add_argument('-i', '--input', required=True,
                        help='Input disk image (raw)')
    parser.add_argument('-o', '--output', required=True,
                        help='Output NDJSON file')
    args = parser.parse_args(argv)

    try:
        scan_file(args.input, args.output)
    except OSError as e:
        log(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
