# NTFS test fixture
# Builds a 1 GiB NTFS image with a fixed file set and carves MFT records out of raw images

from .builder import ImageBuilder
from .cleanup import LoopMountGuard
from .commands import CommandError
from .mft import NtfsEntry, scan_image

__all__ = ['ImageBuilder', 'LoopMountGuard', 'CommandError', 'NtfsEntry', 'scan_image']
