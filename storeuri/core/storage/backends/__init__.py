"""Storage backend implementations."""

from storeuri.core.storage.backends.filesystem_backend import FilesystemBackend
from storeuri.core.storage.backends.ftp_backend import FtpBackend
from storeuri.core.storage.backends.memory_backend import MemoryBackend
from storeuri.core.storage.backends.null_backend import NullBackend
from storeuri.core.storage.backends.replicate_backend import ReplicateBackend
from storeuri.core.storage.backends.zip_backend import ZipArchiveBackend

__all__ = [
    "FilesystemBackend",
    "FtpBackend",
    "MemoryBackend",
    "NullBackend",
    "ReplicateBackend",
    "ZipArchiveBackend",
]

# Conditionally import backends whose client libraries are optional
try:
    from storeuri.core.storage.backends.minio_backend import MinIOBackend

    __all__.append("MinIOBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.gridfs_backend import GridFSBackend

    __all__.append("GridFSBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.azure_backend import AzureBlobBackend

    __all__.append("AzureBlobBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.copy_backend import CopyBackend, CopyClient

    __all__.extend(["CopyBackend", "CopyClient"])
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.dropbox_backend import DropboxBackend

    __all__.append("DropboxBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.rackspace_backend import RackspaceBackend

    __all__.append("RackspaceBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.sftp_backend import SftpBackend

    __all__.append("SftpBackend")
except ImportError:
    pass

try:
    from storeuri.core.storage.backends.webdav_backend import WebDAVBackend

    __all__.append("WebDAVBackend")
except ImportError:
    pass
