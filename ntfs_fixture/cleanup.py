"""Release of the temporary mount point and loop devices.

LoopMountGuard is created right after the temporary mount directory exists
and before anything else can fail. The context manager exit or atexit
performs the release, whichever comes first; the other finds it already
done. SIGINT and SIGTERM only raise SystemExit, so the interrupted writes
unwind and close their files before anything is unmounted.
"""

import atexit
import os
import signal
import sys
import threading

from .commands import run_quiet


def log(msg):
    print(f"[Cleanup] {msg}", flush=True)


class LoopMountGuard:
    """Unmounts, detaches loop devices and removes the mount directory once."""

    def __init__(self, mount_dir: str):
        self.mount_dir = mount_dir
        self.loop_device = None
        self._released = False
        self._previous_handlers = {}

    @property
    def released(self) -> bool:
        return self._released

    def install(self):
        """Register the release with atexit and the termination signals."""
        atexit.register(self.release)
        # Signal handlers can only be set from the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[sig] = signal.signal(sig, self._on_signal)

    def uninstall(self):
        atexit.unregister(self.release)
        for sig, handler in self._previous_handlers.items():
            # None means the handler was not installed from Python
            if handler is not None:
                signal.signal(sig, handler)
        self._previous_handlers.clear()

    def _on_signal(self, sig, frame):
        if self._released:
            log(f"Signal {sig} received during cleanup, ignoring")
            return
        log(f"Signal {sig} received, cleaning up...")
        sys.exit(128 + sig)

    def release(self):
        """Unmount if mounted, detach loop devices, remove the mount directory.

        Every step is best-effort: failures here are never raised, so they
        cannot hide whatever error ended the run.
        """
        if self._released:
            return
        self._released = True

        if os.path.ismount(self.mount_dir):
            log(f"Unmounting {self.mount_dir}...")
            run_quiet(['umount', self.mount_dir])
            if os.path.ismount(self.mount_dir):
                run_quiet(['fusermount', '-u', self.mount_dir])

        # Detaches every loop device, not only the one attached for this image
        if self.loop_device:
            log(f"Detaching loop devices ({self.loop_device} attached)...")
        run_quiet(['losetup', '-D'])

        try:
            os.rmdir(self.mount_dir)
        except OSError:
            pass

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.release()
        finally:
            self.uninstall()
        return False
