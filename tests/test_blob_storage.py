"""Tests for BlobStorage over the backends that need no external service."""

from __future__ import annotations

from io import BytesIO

import pytest

from storeuri.core.storage import BlobStorage
from storeuri.core.storage.blob import BlobNotFoundError


@pytest.fixture(params=["local", "memory", "zip"])
def temp_storage(request, tmp_path, factory):
    """Blob storage on a local directory, in memory or in a zip archive."""
    uris = {
        "local": f"local://{tmp_path}/blobs",
        "memory": "memory:///",
        "zip": f"zip://{tmp_path}/blobs.zip",
    }
    return BlobStorage(factory.create_from_uri(uris[request.param]))


class TestBlobStorage:
    """Test suite for BlobStorage high-level API."""

    def test_put_and_get_bytes(self, temp_storage):
        """Test storing and retrieving bytes."""
        data = b"Hello, blob storage!"
        temp_storage.put("test.txt", data)

        assert temp_storage.get("test.txt") == data

    def test_put_and_get_with_path(self, temp_storage, tmp_path):
        """Test storing data from a file path."""
        test_file = tmp_path / "source.txt"
        test_file.write_bytes(b"File content")

        temp_storage.put("stored.txt", test_file)

        assert temp_storage.get("stored.txt") == b"File content"

    def test_put_with_metadata(self, temp_storage):
        """Test storing blob with custom metadata."""
        metadata = {"author": "test", "version": "1.0"}

        temp_storage.put("test.txt", b"test data", metadata=metadata)

        assert temp_storage.get_metadata("test.txt").custom_metadata == metadata

    def test_put_with_content_type(self, temp_storage):
        """Test storing blob with content type."""
        temp_storage.put("data.json", b'{"key": "value"}', content_type="application/json")

        assert temp_storage.get_metadata("data.json").content_type == "application/json"

    def test_default_content_type(self, temp_storage):
        """Test the content type used when none is given."""
        temp_storage.put("data.bin", b"\x00\x01")

        assert temp_storage.get_metadata("data.bin").content_type == "application/octet-stream"

    def test_get_stream(self, temp_storage):
        """Test retrieving blob as a stream."""
        temp_storage.put("stream.txt", b"Stream data content")

        with temp_storage.get_stream("stream.txt") as stream:
            assert stream.read() == b"Stream data content"

    def test_put_from_stream(self, temp_storage):
        """Test storing blob from a stream."""
        temp_storage.put("from_stream.txt", BytesIO(b"Stream input data"))

        assert temp_storage.get("from_stream.txt") == b"Stream input data"

    def test_delete(self, temp_storage):
        """Test deleting a blob."""
        temp_storage.put("to_delete.txt", b"delete me")
        assert temp_storage.exists("to_delete.txt")

        temp_storage.delete("to_delete.txt")
        assert not temp_storage.exists("to_delete.txt")

    def test_delete_nonexistent(self, temp_storage):
        """Test deleting a non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.delete("nonexistent.txt")

    def test_delete_many(self, temp_storage):
        """Test batch deletion of blobs."""
        for i in range(4):
            temp_storage.put(f"file{i}.txt", f"content {i}".encode())

        results = temp_storage.delete_many(["file0.txt", "file2.txt", "nonexistent.txt"])

        assert results == {"file0.txt": True, "file2.txt": True, "nonexistent.txt": False}
        assert not temp_storage.exists("file0.txt")
        assert temp_storage.exists("file1.txt")
        assert not temp_storage.exists("file2.txt")
        assert temp_storage.exists("file3.txt")

    def test_get_metadata(self, temp_storage):
        """Test retrieving blob metadata."""
        data = b"test data for metadata"

        temp_storage.put("test.txt", data, content_type="text/plain", metadata={"key": "value"})
        blob_meta = temp_storage.get_metadata("test.txt")

        assert blob_meta.key == "test.txt"
        assert blob_meta.size == len(data)
        assert blob_meta.content_type == "text/plain"
        assert blob_meta.custom_metadata == {"key": "value"}
        assert blob_meta.last_modified is not None

    def test_get_size(self, temp_storage):
        """Test getting blob size."""
        temp_storage.put("test.bin", b"x" * 1024)

        assert temp_storage.get_size("test.bin") == 1024

    def test_list_blobs(self, temp_storage):
        """Test listing blobs."""
        for name in ("file1.txt", "file2.txt", "file3.txt"):
            temp_storage.put(name, b"data")

        keys = {blob.key for blob in temp_storage.list()}

        assert keys == {"file1.txt", "file2.txt", "file3.txt"}

    def test_list_with_prefix(self, temp_storage):
        """Test listing blobs with prefix filter, including nested keys."""
        temp_storage.put("docs/readme.txt", b"readme")
        temp_storage.put("docs/guides/setup.txt", b"guide")
        temp_storage.put("images/photo.jpg", b"photo")
        temp_storage.put("root.txt", b"root")

        keys = {blob.key for blob in temp_storage.list(prefix="docs/")}

        assert keys == {"docs/readme.txt", "docs/guides/setup.txt"}

    def test_list_empty(self, temp_storage):
        """Test listing a backend without blobs."""
        assert list(temp_storage.list()) == []

    def test_copy(self, temp_storage):
        """Test copying a blob keeps data and metadata."""
        temp_storage.put("source.txt", b"original data", "text/plain", {"k": "v"})

        temp_storage.copy("source.txt", "destination.txt")

        assert temp_storage.exists("source.txt")
        assert temp_storage.get("destination.txt") == b"original data"
        assert temp_storage.get_metadata("destination.txt").custom_metadata == {"k": "v"}

    def test_copy_nonexistent(self, temp_storage):
        """Test copying a missing blob."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.copy("missing.txt", "destination.txt")

    def test_download_to_file(self, temp_storage, tmp_path):
        """Test downloading blob to a file."""
        temp_storage.put("source.txt", b"download this content")

        download_path = tmp_path / "downloaded.txt"
        temp_storage.download_to_file("source.txt", download_path)

        assert download_path.read_bytes() == b"download this content"

    def test_get_nonexistent_blob(self, temp_storage):
        """Test getting non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.get("nonexistent.txt")

    def test_get_metadata_nonexistent(self, temp_storage):
        """Test getting metadata for non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.get_metadata("nonexistent.txt")

    def test_blob_with_special_characters(self, temp_storage):
        """Test blob keys with special characters."""
        keys = [
            "file with spaces.txt",
            "file-with-dashes.txt",
            "file_with_underscores.txt",
            "file.multiple.dots.txt",
        ]

        for key in keys:
            temp_storage.put(key, b"data")
            assert temp_storage.exists(key)
            assert temp_storage.get(key) == b"data"

    def test_nested_paths(self, temp_storage):
        """Test deeply nested blob paths."""
        key = "level1/level2/level3/level4/file.txt"

        temp_storage.put(key, b"nested data")

        assert temp_storage.get(key) == b"nested data"

    def test_overwrite_blob(self, temp_storage):
        """Test overwriting an existing blob."""
        temp_storage.put("overwrite.txt", b"original", metadata={"v": "1"})
        temp_storage.put("overwrite.txt", b"updated", metadata={"v": "2"})

        assert temp_storage.get("overwrite.txt") == b"updated"
        assert temp_storage.get_metadata("overwrite.txt").custom_metadata == {"v": "2"}
        assert [blob.key for blob in temp_storage.list()] == ["overwrite.txt"]

    def test_empty_blob(self, temp_storage):
        """Test storing empty blob."""
        temp_storage.put("empty.txt", b"")

        assert temp_storage.exists("empty.txt")
        assert temp_storage.get("empty.txt") == b""
        assert temp_storage.get_size("empty.txt") == 0
