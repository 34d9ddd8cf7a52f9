"""Build blob storage backends from URIs such as ``s3://host/prefix?bucket=data``.

This package provides:
- URI parsing into adapter configurations
- An adapter factory over local, in-memory, archive and remote storage kinds
- A registry of named backend configurations
"""

__all__ = ["core"]
