import pytest

from ntfs_fixture import builder, cleanup
from ntfs_fixture.commands import CommandError


class FakeCommands:
    """Records external commands instead of running them."""

    def __init__(self):
        self.calls = []
        self.quiet_calls = []
        self.failures = {}
        self.loop_device = '/dev/loop7'

    def fail(self, program, returncode):
        self.failures[program] = returncode

    def run(self, cmd, capture=False):
        self.calls.append(list(cmd))
        if cmd[0] in self.failures:
            raise CommandError(cmd, self.failures[cmd[0]])
        if cmd[0] == 'losetup' and capture:
            return self.loop_device
        return '' if capture else None

    def run_quiet(self, cmd):
        self.quiet_calls.append(list(cmd))
        return 0

    @property
    def programs(self):
        return [cmd[0] for cmd in self.calls]


@pytest.fixture
def fake_commands(monkeypatch):
    fake = FakeCommands()
    monkeypatch.setattr(builder, 'run', fake.run)
    monkeypatch.setattr(cleanup, 'run_quiet', fake.run_quiet)
    return fake


@pytest.fixture
def mount_dirs(monkeypatch, tmp_path):
    """Route the builder's temporary mount directories under tmp_path."""
    created = []

    def mkdtemp(prefix=None):
        path = tmp_path / f"{prefix}{len(created)}"
        path.mkdir()
        created.append(str(path))
        return str(path)

    monkeypatch.setattr(builder.tempfile, 'mkdtemp', mkdtemp)
    return created

