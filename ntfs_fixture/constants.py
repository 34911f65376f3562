"""Shared constants for image construction and MFT scanning."""

MIB = 1024 * 1024

# Fixture image
IMAGE_SIZE_MIB = 1024
IMAGE_SIZE_BYTES = IMAGE_SIZE_MIB * MIB
VOLUME_LABEL = "TEST_NTFS"
FS_TYPE = "ntfs-3g"
MOUNT_PREFIX = "ntfs-fixture-"
WRITE_CHUNK_SIZE = MIB

# MFT record layout
SECTOR_SIZE = 512
MFT_RECORD_SIZE = 1024
FILE_SIGNATURE = b'FILE'
SCAN_ALIGNMENT = 8

MFT_RECORD_IN_USE = 0x0001
MFT_RECORD_IS_DIRECTORY = 0x0002

# Attribute types
ATTR_STANDARD_INFORMATION = 0x10
ATTR_FILE_NAME = 0x30
ATTR_OBJECT_ID = 0x40
ATTR_DATA = 0x80
ATTR_REPARSE_POINT = 0xC0
ATTR_EA_INFORMATION = 0xD0
ATTR_END = 0xFFFFFFFF

# File attribute flags ($STANDARD_INFORMATION)
FILE_ATTR_READONLY = 0x0001
FILE_ATTR_HIDDEN = 0x0002
FILE_ATTR_SYSTEM = 0x0004
FILE_ATTR_DIRECTORY = 0x0010
FILE_ATTR_ARCHIVE = 0x0020
FILE_ATTR_DEVICE = 0x0040
FILE_ATTR_NORMAL = 0x0080
FILE_ATTR_TEMPORARY = 0x0100
FILE_ATTR_SPARSE_FILE = 0x0200
FILE_ATTR_REPARSE_POINT = 0x0400
FILE_ATTR_COMPRESSED = 0x0800
FILE_ATTR_OFFLINE = 0x1000
FILE_ATTR_NOT_CONTENT_INDEXED = 0x2000
FILE_ATTR_ENCRYPTED = 0x4000

# Filename namespaces
FILENAME_POSIX = 0
FILENAME_WIN32 = 1
FILENAME_DOS = 2
FILENAME_WIN32_AND_DOS = 3

# Reparse tags with a substitute name we decode
IO_REPARSE_TAG_MOUNT_POINT = 0xA0000003
IO_REPARSE_TAG_SYMLINK = 0xA000000C

# Seconds between 1601-01-01 and 1970-01-01
EPOCH_DIFF = 11644473600
