"""The fixed set of files and directories written into the fixture image."""

import os
import time
from dataclasses import dataclass
from typing import Iterable, List

from .constants import MIB, WRITE_CHUNK_SIZE

KIND_TEXT = 'text'
KIND_TIMESTAMP = 'timestamp'
KIND_RANDOM = 'random'
KIND_DIRECTORY = 'directory'

SAMPLE_PASSWORD = "Taunt-Change-Blatancy-Brunch-Procurer Darn-Gainfully-Skied-Passive-Pancake"


@dataclass(frozen=True)
class ManifestEntry:
    """One file or directory, relative to the image root."""
    kind: str
    path: str
    content: str = ""
    size: int = 0


def text_file(path: str, content: str) -> ManifestEntry:
    return ManifestEntry(KIND_TEXT, path, content=content)


def random_file(path: str, size: int) -> ManifestEntry:
    return ManifestEntry(KIND_RANDOM, path, size=size)


def directory(path: str) -> ManifestEntry:
    return ManifestEntry(KIND_DIRECTORY, path)


DEFAULT_MANIFEST = (
    text_file('hello.txt', "Hello, NTFS!\n"),
    ManifestEntry(KIND_TIMESTAMP, 'date.txt'),
    text_file('sample_password.txt', SAMPLE_PASSWORD + "\n"),
    random_file('small_random.bin', 25),
    random_file('bigfile1.bin', 100 * MIB),
    random_file('bigfile2.bin', 100 * MIB),
    random_file('bigfile3.bin', 100 * MIB),
    directory('folder1'),
    text_file('folder1/sample_file.txt', "Sample file in folder1\n"),
    directory('folder1/subfolder_in_folder1'),
    text_file('folder1/subfolder_in_folder1/sample_file.txt',
              "Sample file in subfolder_in_folder1\n"),
)


def timestamp_text(now: float = None) -> str:
    """Current local time in date(1) default format, newline terminated."""
    return time.strftime('%a %b %e %H:%M:%S %Z %Y', time.localtime(now)) + "\n"


def expected_paths(manifest: Iterable[ManifestEntry] = DEFAULT_MANIFEST) -> List[str]:
    """Relative paths of every entry the manifest creates."""
    return [entry.path for entry in manifest]


def write_random(path: str, size: int, chunk_size: int = WRITE_CHUNK_SIZE):
    """Write size bytes from the OS random source."""
    with open(path, 'wb') as f:
        remaining = size
        while remaining > 0:
            n = min(chunk_size, remaining)
            f.write(os.urandom(n))
            remaining -= n


def write_entry(root: str, entry: ManifestEntry):
    target = os.path.join(root, *entry.path.split('/'))

    if entry.kind == KIND_DIRECTORY:
        os.mkdir(target)
    elif entry.kind == KIND_TEXT:
        with open(target, 'w', encoding='utf-8', newline='') as f:
            f.write(entry.content)
    elif entry.kind == KIND_TIMESTAMP:
        with open(target, 'w', encoding='utf-8', newline='') as f:
            f.write(timestamp_text())
    elif entry.kind == KIND_RANDOM:
        write_random(target, entry.size)
    else:
        raise ValueError(f"Unknown manifest entry kind: {entry.kind!r}")


def populate(root: str, manifest: Iterable[ManifestEntry] = DEFAULT_MANIFEST,
             log=None) -> int:
    """
    Write every manifest entry under root, in order.

    Parent directories must appear in the manifest before their contents.
    The first failing write propagates its OSError.

    Returns:
        Number of entries written
    """
    count = 0
    for entry in manifest:
        write_entry(root, entry)
        count += 1
        if log:
            if entry.kind == KIND_DIRECTORY:
                log(f"  + {entry.path}/")
            else:
                log(f"  + {entry.path}")
    return count
