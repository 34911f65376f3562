"""Tests for the fixture file set."""

import os
import re

import pytest

from ntfs_fixture import manifest
from ntfs_fixture.constants import MIB
from ntfs_fixture.manifest import (
    DEFAULT_MANIFEST, KIND_DIRECTORY, ManifestEntry, SAMPLE_PASSWORD,
    directory, expected_paths, populate, random_file, text_file, timestamp_text
)


def test_default_manifest_contents():
    files = [e.path for e in DEFAULT_MANIFEST if e.kind != KIND_DIRECTORY]
    assert files == [
        'hello.txt',
        'date.txt',
        'sample_password.txt',
        'small_random.bin',
        'bigfile1.bin',
        'bigfile2.bin',
        'bigfile3.bin',
        'folder1/sample_file.txt',
        'folder1/subfolder_in_folder1/sample_file.txt',
    ]
    dirs = [e.path for e in DEFAULT_MANIFEST if e.kind == KIND_DIRECTORY]
    assert dirs == ['folder1', 'folder1/subfolder_in_folder1']


def test_default_manifest_sizes():
    by_path = {e.path: e for e in DEFAULT_MANIFEST}
    assert by_path['hello.txt'].content == "Hello, NTFS!\n"
    assert by_path['sample_password.txt'].content == SAMPLE_PASSWORD + "\n"
    assert by_path['small_random.bin'].size == 25
    for name in ('bigfile1.bin', 'bigfile2.bin', 'bigfile3.bin'):
        assert by_path[name].size == 100 * MIB
    assert by_path['folder1/sample_file.txt'].content == "Sample file in folder1\n"


def test_directories_precede_their_contents():
    seen = set()
    for entry in DEFAULT_MANIFEST:
        parent = os.path.dirname(entry.path)
        assert parent == '' or parent in seen
        if entry.kind == KIND_DIRECTORY:
            seen.add(entry.path)


def test_timestamp_text_looks_like_date_output():
    text = timestamp_text(0)
    assert text.endswith("\n")
    assert re.match(r'^\w{3} \w{3} [ \d]\d \d{2}:\d{2}:\d{2} \S* ?\d{4}\n$', text)


def test_populate_writes_exact_bytes(tmp_path):
    entries = [
        text_file('hello.txt', "Hello, NTFS!\n"),
        ManifestEntry(manifest.KIND_TIMESTAMP, 'date.txt'),
        random_file('small_random.bin', 25),
        directory('folder1'),
        text_file('folder1/sample_file.txt', "Sample file in folder1\n"),
    ]
    assert populate(str(tmp_path), entries) == 5

    assert (tmp_path / 'hello.txt').read_bytes() == b"Hello, NTFS!\n"
    assert (tmp_path / 'date.txt').read_text().endswith("\n")
    assert (tmp_path / 'small_random.bin').stat().st_size == 25
    assert (tmp_path / 'folder1').is_dir()
    assert (tmp_path / 'folder1' / 'sample_file.txt').stat().st_size == 23


def test_random_file_is_written_in_chunks(tmp_path, monkeypatch):
    requested = []
    real_urandom = os.urandom

    def urandom(n):
        requested.append(n)
        return real_urandom(n)

    monkeypatch.setattr(manifest.os, 'urandom', urandom)
    manifest.write_random(str(tmp_path / 'r.bin'), 2500, chunk_size=1000)

    assert requested == [1000, 1000, 500]
    assert (tmp_path / 'r.bin').stat().st_size == 2500


def test_random_files_differ(tmp_path):
    populate(str(tmp_path), [random_file('a.bin', 64), random_file('b.bin', 64)])
    assert (tmp_path / 'a.bin').read_bytes() != (tmp_path / 'b.bin').read_bytes()


def test_populate_stops_at_first_failure(tmp_path):
    entries = [
        text_file('missing_dir/file.txt', "x"),
        text_file('never.txt', "y"),
    ]
    with pytest.raises(OSError):
        populate(str(tmp_path), entries)
    assert not (tmp_path / 'never.txt').exists()


def test_unknown_kind_rejected(tmp_path):
    with pytest.raises(ValueError):
        populate(str(tmp_path), [ManifestEntry('socket', 'x')])


def test_populate_logs_each_entry(tmp_path):
    lines = []
    populate(str(tmp_path), [directory('d'), text_file('d/f.txt', "f")], log=lines.append)
    assert lines == ["  + d/", "  + d/f.txt"]


def test_expected_paths():
    assert len(expected_paths()) == 11
    assert 'folder1/subfolder_in_folder1/sample_file.txt' in expected_paths()
