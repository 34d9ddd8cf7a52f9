"""Tests for the SFTP, Azure and Copy backends against mocked clients."""

from __future__ import annotations

import stat
from unittest.mock import Mock, patch

import pytest

from storeuri.core.storage.blob import (
    BlobNotFoundError,
    BlobStorageConnectionError,
    BlobStorageError,
)


class TestSftpBackend:
    """Test SFTP operations against a mocked paramiko client."""

    @pytest.fixture
    def ssh(self):
        pytest.importorskip("paramiko")
        with patch("storeuri.core.storage.backends.sftp_backend.paramiko.SSHClient") as ssh_class:
            yield ssh_class.return_value

    @pytest.fixture
    def sftp(self, ssh):
        return ssh.open_sftp.return_value

    @pytest.fixture
    def backend(self, ssh):
        from storeuri.core.storage.backends.sftp_backend import SftpBackend

        return SftpBackend("files.example.com", username="deploy", password="pw", root="/srv/blobs/")

    def test_connects_with_password(self, backend, ssh):
        backend.delete("a.txt")
        backend.delete("b.txt")

        ssh.connect.assert_called_once()
        kwargs = ssh.connect.call_args.kwargs
        assert kwargs["hostname"] == "files.example.com"
        assert kwargs["port"] == 22
        assert kwargs["password"] == "pw"
        assert "key_filename" not in kwargs

    def test_connection_failure(self, backend, ssh):
        ssh.connect.side_effect = OSError("unreachable")

        with pytest.raises(BlobStorageConnectionError):
            backend.exists("a.txt")

        ssh.close.assert_called_once()

    def test_put_creates_parents(self, backend, sftp):
        """Test that missing remote directories are created."""
        sftp.stat.side_effect = [Mock(), Mock(), FileNotFoundError()]

        backend.put("reports/q1.csv", b"a,b")

        sftp.mkdir.assert_called_once_with("/srv/blobs/reports")
        stream, path = sftp.putfo.call_args.args
        assert path == "/srv/blobs/reports/q1.csv"
        assert stream.read() == b"a,b"

    def test_get_not_found(self, backend, sftp):
        sftp.getfo.side_effect = FileNotFoundError()

        with pytest.raises(BlobNotFoundError):
            backend.get("a.txt")

    def test_exists_regular_file_only(self, backend, sftp):
        sftp.stat.return_value = Mock(st_mode=stat.S_IFDIR | 0o755)

        assert backend.exists("folder") is False

        sftp.stat.return_value = Mock(st_mode=stat.S_IFREG | 0o644)
        assert backend.exists("a.txt") is True

    def test_list_blobs(self, backend, sftp):
        """Test recursive listing relative to the root."""

        def entry(name, mode, size=0):
            return Mock(filename=name, st_mode=mode, st_size=size, st_mtime=1735689600)

        listings = {
            "/srv/blobs": [entry("z.txt", stat.S_IFREG, 1), entry("logs", stat.S_IFDIR)],
            "/srv/blobs/logs": [entry("a.log", stat.S_IFREG, 2)],
        }
        sftp.listdir_attr.side_effect = lambda directory: listings[directory]

        blobs = backend.list_blobs()

        assert [(blob.key, blob.size) for blob in blobs] == [("logs/a.log", 2), ("z.txt", 1)]
        assert [blob.key for blob in backend.list_blobs(prefix="z")] == ["z.txt"]


class TestAzureBlobBackend:
    """Test Azure operations against a mocked service client."""

    @pytest.fixture
    def service(self):
        pytest.importorskip("azure.storage.blob")
        return Mock()

    @pytest.fixture
    def container(self, service):
        return service.get_container_client.return_value

    @pytest.fixture
    def backend(self, service):
        from storeuri.core.storage.backends.azure_backend import AzureBlobBackend

        return AzureBlobBackend(service, "my-container", prefix="/exports/")

    def test_put_with_prefix(self, backend, service, container):
        container.get_blob_client.return_value.upload_blob.return_value = {"etag": "0x1"}

        assert backend.put("a.csv", b"x", "text/csv") == "0x1"

        service.get_container_client.assert_called_once_with("my-container")
        container.get_blob_client.assert_called_once_with("exports/a.csv")
        kwargs = container.get_blob_client.return_value.upload_blob.call_args.kwargs
        assert kwargs["overwrite"] is True
        assert kwargs["content_settings"].content_type == "text/csv"

    def test_get_not_found(self, backend, container):
        from azure.core.exceptions import ResourceNotFoundError

        container.get_blob_client.return_value.download_blob.side_effect = ResourceNotFoundError(
            "missing"
        )

        with pytest.raises(BlobNotFoundError):
            backend.get("a.csv")

    def test_delete_error(self, backend, container):
        from azure.core.exceptions import AzureError

        container.delete_blob.side_effect = AzureError("denied")

        with pytest.raises(BlobStorageError):
            backend.delete("a.csv")

    def test_list_blobs_strips_prefix(self, backend, container):
        props = Mock(size=3, last_modified=None, etag="e")
        props.name = "exports/a.csv"
        container.list_blobs.return_value = [props]

        blobs = backend.list_blobs()

        assert [blob.key for blob in blobs] == ["a.csv"]
        container.list_blobs.assert_called_once_with(name_starts_with="exports/")


class TestCopyBackend:
    """Test the Copy backend against a mocked API client."""

    @pytest.fixture
    def client(self):
        pytest.importorskip("requests_oauthlib")
        return Mock()

    @pytest.fixture
    def backend(self, client):
        from storeuri.core.storage.backends.copy_backend import CopyBackend

        return CopyBackend(client, root="/backups")

    def test_put_returns_revision(self, backend, client):
        client.upload.return_value = {"revision": 7}

        assert backend.put("a.txt", b"x") == "7"
        client.upload.assert_called_once_with("/backups/a.txt", b"x")

    def test_get_missing(self, backend, client):
        client.download.return_value = None

        with pytest.raises(BlobNotFoundError):
            backend.get("a.txt")

    def test_request_errors_are_wrapped(self, backend, client):
        import requests

        client.delete.side_effect = requests.ConnectionError("down")

        with pytest.raises(BlobStorageError):
            backend.delete("a.txt")

    def test_exists_only_for_files(self, backend, client):
        client.meta.return_value = {"type": "dir", "path": "/backups/a"}

        assert backend.exists("a") is False

    def test_list_blobs_walks_folders(self, backend, client):
        tree = {
            "/backups": {
                "children": [
                    {"type": "file", "path": "/backups/b.txt", "size": 2, "revision": 1},
                    {"type": "dir", "path": "/backups/sub"},
                ]
            },
            "/backups/sub": {
                "children": [{"type": "file", "path": "/backups/sub/a.txt", "size": 1}]
            },
        }
        client.meta.side_effect = tree.get

        blobs = backend.list_blobs()

        assert [(blob.key, blob.size) for blob in blobs] == [("b.txt", 2), ("sub/a.txt", 1)]
        assert blobs[0].etag == "1"
