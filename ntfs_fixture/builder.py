"""Build the NTFS test fixture image.

Allocates a 1 GiB zero-filled image, formats it as NTFS, mounts it through a
loop device and writes a fixed set of small files, three 100 MiB random
files and a nested directory tree.

Usage:
    sudo python3 -m ntfs_fixture.builder /path/to/image.raw
"""
import os
import sys
import tempfile
from typing import Iterable, Optional

from .cleanup import LoopMountGuard
from .commands import CommandError, run
from .constants import FS_TYPE, IMAGE_SIZE_MIB, MOUNT_PREFIX, VOLUME_LABEL
from .manifest import DEFAULT_MANIFEST, ManifestEntry, populate


def log(msg):
    print(f"[Builder] {msg}", flush=True)


class ImageBuilder:
    """Runs the allocate, format, attach, mount, populate, sync sequence."""

    def __init__(self, image_path: str,
                 size_mib: int = IMAGE_SIZE_MIB,
                 label: str = VOLUME_LABEL,
                 manifest: Iterable[ManifestEntry] = DEFAULT_MANIFEST,
                 fs_type: str = FS_TYPE):
        self.image_path = image_path
        self.size_mib = size_mib
        self.label = label
        self.manifest = tuple(manifest)
        self.fs_type = fs_type

        self.mount_dir: Optional[str] = None
        self.loop_device: Optional[str] = None

    def build(self):
        """Build the image. Any failing step raises; cleanup always runs."""
        self.mount_dir = tempfile.mkdtemp(prefix=MOUNT_PREFIX)

        with LoopMountGuard(self.mount_dir) as guard:
            self._allocate()
            self._format()
            self.loop_device = self._attach()
            guard.loop_device = self.loop_device
            self._mount()
            self._populate()
            self._flush()

        log(f"Image ready: {self.image_path}")

    def _allocate(self):
        """Create (or truncate and rewrite) the zero-filled image file."""
        log(f"Creating {self.size_mib}MB image {self.image_path}...")
        run(['dd', 'if=/dev/zero', f'of={self.image_path}',
             'bs=1M', f'count={self.size_mib}', 'status=progress'])

    def _format(self):
        log(f"Formatting NTFS (label {self.label})...")
        run(['mkfs.ntfs', '-F', '-L', self.label, self.image_path])

    def _attach(self) -> str:
        device = run(['losetup', '--find', '--show', self.image_path], capture=True)
        log(f"Attached {self.image_path} to {device}")
        return device

    def _mount(self):
        log(f"Mounting {self.loop_device} on {self.mount_dir}...")
        run(['mount', '-t', self.fs_type, self.loop_device, self.mount_dir])

    def _populate(self):
        log("Writing files...")
        count = populate(self.mount_dir, self.manifest, log=log)
        log(f"Wrote {count} entries")

    def _flush(self):
        run(['sync'])


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if len(argv) != 1:
        prog = os.path.basename(sys.argv[0])
        # python -m gives the module file, not a command name
        if not prog or prog.endswith('.py'):
            prog = 'ntfs-fixture'
        print(f"Usage: {prog} <output-image-file>")
        return 1

    builder = ImageBuilder(argv[0])
    try:
        builder.build()
    except CommandError as e:
        log(f"ERROR: {e}")
        return e.exit_status
    except OSError as e:
        log(f"ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
