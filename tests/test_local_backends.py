"""Backend specific behavior of the filesystem, memory and zip backends."""

from __future__ import annotations

import zipfile

import pytest

from storeuri.core.storage.backends import FilesystemBackend, MemoryBackend, ZipArchiveBackend
from storeuri.core.storage.blob import BlobNotFoundError, BlobStorageError


class TestFilesystemBackend:
    """Test the on-disk layout of the filesystem backend."""

    def test_creates_root(self, tmp_path):
        backend = FilesystemBackend(tmp_path / "a" / "b")

        assert backend.root.is_dir()

    def test_metadata_side_file(self, tmp_path):
        """Test that metadata is kept next to the blob and hidden from listings."""
        backend = FilesystemBackend(tmp_path)

        backend.put("doc.txt", b"x", metadata={"k": "v"})

        assert (tmp_path / "doc.txt.meta").exists()
        assert [blob.key for blob in backend.list_blobs()] == ["doc.txt"]

    def test_external_file_without_metadata(self, tmp_path):
        """Test files written by other tools."""
        (tmp_path / "external.bin").write_bytes(b"12345")
        backend = FilesystemBackend(tmp_path)

        metadata = backend.get_metadata("external.bin")

        assert metadata.size == 5
        assert metadata.content_type == "application/octet-stream"
        assert metadata.custom_metadata == {}

    def test_delete_cleans_empty_directories(self, tmp_path):
        backend = FilesystemBackend(tmp_path)
        backend.put("a/b/c.txt", b"x")

        backend.delete("a/b/c.txt")

        assert not (tmp_path / "a").exists()
        assert tmp_path.exists()

    def test_directory_is_not_a_blob(self, tmp_path):
        backend = FilesystemBackend(tmp_path)
        (tmp_path / "folder").mkdir()

        assert not backend.exists("folder")
        with pytest.raises(BlobNotFoundError):
            backend.get("folder")


class TestMemoryBackend:
    """Test in-memory specifics."""

    def test_etag_is_content_hash(self):
        backend = MemoryBackend()

        assert backend.put("a", b"same") == backend.put("b", b"same")
        assert backend.put("c", b"other") != backend.get_metadata("a").etag

    def test_metadata_is_copied(self):
        """Test that callers cannot change stored metadata by reference."""
        backend = MemoryBackend()
        metadata = {"k": "v"}
        backend.put("a", b"x", metadata=metadata)

        metadata["k"] = "changed"
        backend.get_metadata("a").custom_metadata["k"] = "changed"

        assert backend.get_metadata("a").custom_metadata == {"k": "v"}


class TestZipArchiveBackend:
    """Test the zip archive layout."""

    def test_archive_created_on_first_write(self, tmp_path):
        path = tmp_path / "nested" / "blobs.zip"
        backend = ZipArchiveBackend(path)

        assert not path.exists()
        assert backend.list_blobs() == []

        backend.put("a.txt", b"data")

        assert zipfile.is_zipfile(path)
        with zipfile.ZipFile(path) as archive:
            assert archive.namelist() == ["a.txt"]
            assert archive.read("a.txt") == b"data"

    def test_missing_archive_reads(self, tmp_path):
        backend = ZipArchiveBackend(tmp_path / "missing.zip")

        assert not backend.exists("a.txt")
        with pytest.raises(BlobNotFoundError):
            backend.get("a.txt")

    def test_delete_rewrites_archive(self, tmp_path):
        """Test that deleted members are gone from the archive itself."""
        path = tmp_path / "blobs.zip"
        backend = ZipArchiveBackend(path)
        backend.put("a.txt", b"a", metadata={"keep": "yes"})
        backend.put("b.txt", b"b")

        backend.delete("b.txt")

        with zipfile.ZipFile(path) as archive:
            assert archive.namelist() == ["a.txt"]
        assert backend.get_metadata("a.txt").custom_metadata == {"keep": "yes"}
        assert list(tmp_path.iterdir()) == [path]

    def test_corrupt_archive(self, tmp_path):
        path = tmp_path / "broken.zip"
        path.write_bytes(b"not a zip file")

        with pytest.raises(BlobStorageError):
            ZipArchiveBackend(path).get("a.txt")

    def test_etag_is_crc(self, tmp_path):
        backend = ZipArchiveBackend(tmp_path / "blobs.zip")
        backend.put("a.txt", b"data")

        assert backend.get_metadata("a.txt").etag == f"{zipfile.crc32(b'data'):08x}"
