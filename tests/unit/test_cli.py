"""Tests for the command line interface."""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from typer.testing import CliRunner

from driveupload.cli.main import app
from driveupload import UploadResult, RemoteFileInfo, ProtocolError, IntegrityError

runner = CliRunner()


@pytest.fixture
def drive():
    """Mock DriveClient usable as an async context manager."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.upload = AsyncMock(return_value=UploadResult(
        file_id="abc123", size=12, md5="d" * 32, mime_type="text/plain"
    ))
    client.get_upload_url = AsyncMock(return_value="https://example/session?upload_id=1")
    client.get_final = AsyncMock(return_value=RemoteFileInfo(size=12, md5="d" * 32, mime_type="text/plain"))
    with patch("driveupload.cli.main.make_client", return_value=client) as make_client:
        client.make_client = make_client
        yield client


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"test content")
    return path


class TestCLI:
    """Test suite for CLI commands."""

    def test_upload(self, drive, local_file):
        result = runner.invoke(app, ["upload", str(local_file), "--folder-id", "f1", "--token", "t"])

        assert result.exit_code == 0
        assert "abc123" in result.output
        kwargs = drive.upload.call_args.kwargs
        assert kwargs['folder_id'] == "f1"
        assert kwargs['verify'] is True
        assert kwargs['probe_retry'] is None
        drive.make_client.assert_called_once_with("t", None, None)

    def test_upload_options(self, drive, local_file):
        result = runner.invoke(app, [
            "upload", str(local_file), "--no-md5", "--no-verify", "--retry-probes",
            "--chunk-size", "524288", "--name", "renamed.txt"
        ])

        assert result.exit_code == 0
        kwargs = drive.upload.call_args.kwargs
        assert kwargs['skip_md5'] is True
        assert kwargs['verify'] is False
        assert kwargs['chunk_size'] == 524288
        assert kwargs['filename'] == "renamed.txt"
        assert kwargs['probe_retry'] is not None

    def test_upload_failure_reports_file_id(self, drive, local_file):
        drive.upload.side_effect = IntegrityError("File transfer size mismatch", file_id="abc123")

        result = runner.invoke(app, ["upload", str(local_file)])

        assert result.exit_code == 1
        assert "abc123" in result.output

    def test_url(self, drive, local_file):
        result = runner.invoke(app, ["url", str(local_file)])

        assert result.exit_code == 0
        assert "upload_id=1" in result.output
        drive.get_upload_url.assert_awaited_once_with("notes.txt", 12, folder_id=None, mime_type=None)

    def test_info(self, drive):
        result = runner.invoke(app, ["info", "abc123"])

        assert result.exit_code == 0
        assert "d" * 32 in result.output
        drive.get_final.assert_awaited_once_with("abc123")

    def test_info_failure(self, drive):
        drive.get_final.side_effect = ProtocolError("Getting file attributes failed with status code 404")

        result = runner.invoke(app, ["info", "missing"])

        assert result.exit_code == 1
