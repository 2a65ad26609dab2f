"""End-to-end tests for DriveClient against the fake Drive backend."""
import hashlib

import pytest

import driveupload
from driveupload import (
    DriveClient,
    UploadConfig,
    BytesChunkSource,
    ConfigurationError,
    IntegrityError,
    ProtocolError,
)
from driveupload.core.upload import UploadFacade


@pytest.fixture
def data_file(tmp_path, sample_data):
    path = tmp_path / "movie.mov"
    path.write_bytes(sample_data)
    return path


class TestDriveClientUpload:
    """Test suite for DriveClient.upload."""

    @pytest.mark.asyncio
    async def test_upload_file(self, api_config, token, fake_drive, data_file, sample_data):
        """Test a file is created, uploaded in chunks and verified."""
        progress = []
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(
                data_file,
                folder_id="folder1",
                mime_type="video/quicktime",
                progress_callback=lambda p: progress.append(p.uploaded_bytes)
            )

        upload = fake_drive.files[result.file_id]
        assert upload['name'] == "movie.mov"
        assert upload['parents'] == ["folder1"]
        assert bytes(upload['data']) == sample_data
        assert result.size == len(sample_data)
        assert result.md5 == hashlib.md5(sample_data).hexdigest()
        assert result.mime_type == "video/quicktime"
        assert progress[-1] == len(sample_data)
        assert [r for r, _ in fake_drive.requests] == [
            "bytes 0-262143/716800",
            "bytes 262144-524287/716800",
            "bytes 524288-716799/716800",
        ]

    @pytest.mark.asyncio
    async def test_resume_after_server_error(self, api_config, token, fake_drive, data_file, sample_data):
        """Test a failed chunk is probed and resent."""
        fake_drive.fail_puts = 1
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(data_file)

        assert bytes(fake_drive.files[result.file_id]['data']) == sample_data
        assert [r for r, _ in fake_drive.requests][:3] == [
            "bytes 0-262143/716800",
            "bytes */716800",
            "bytes 0-262143/716800",
        ]

    @pytest.mark.asyncio
    async def test_partial_commits(self, api_config, token, fake_drive, data_file, sample_data):
        """Test replayed ranges keep the hash and observer exact."""
        fake_drive.commit_limit = 100000
        seen = []
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(data_file, data_callback=seen.append)

        assert bytes(fake_drive.files[result.file_id]['data']) == sample_data
        assert b"".join(seen) == sample_data
        assert result.md5 == hashlib.md5(sample_data).hexdigest()
        assert fake_drive.requests[1][0] == "bytes 100000-362143/716800"

    @pytest.mark.asyncio
    async def test_upload_from_source(self, api_config, token, fake_drive, sample_data):
        """Test uploading a chunk source with an explicit name and size."""
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(
                chunk_source=BytesChunkSource(sample_data),
                filename="stream.bin",
                size=len(sample_data),
                chunk_size=512 * 1024
            )

        assert fake_drive.files[result.file_id]['name'] == "stream.bin"
        assert len(fake_drive.requests) == 2

    @pytest.mark.asyncio
    async def test_upload_from_factory(self, api_config, token, fake_drive, sample_data):
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(
                chunk_source=lambda start, length: sample_data[start:start + length],
                filename="factory.bin",
                size=len(sample_data),
                skip_md5=True
            )

        assert result.md5 == hashlib.md5(sample_data).hexdigest()

    @pytest.mark.asyncio
    async def test_existing_upload_url(self, api_config, token, fake_drive, data_file, sample_data):
        """Test resuming into a session URL created beforehand."""
        async with DriveClient(token=token, config=api_config) as drive:
            url = await drive.get_upload_url("movie.mov", len(sample_data))
            result = await drive.upload(data_file, upload_url=url)
            info = await drive.get_final(result.file_id)

        assert len(fake_drive.sessions) == 1
        assert info.size == len(sample_data)
        assert info.md5 == result.md5

    @pytest.mark.asyncio
    async def test_upload_url_without_auth(self, api_config, token, fake_drive, data_file, sample_data):
        """Test an existing session URL needs no credentials when not verifying."""
        async with DriveClient(token=token, config=api_config) as drive:
            url = await drive.get_upload_url("movie.mov", len(sample_data))

        async with DriveClient(config=api_config) as drive:
            result = await drive.upload(data_file, upload_url=url, verify=False)

        assert result.md5 == hashlib.md5(sample_data).hexdigest()
        assert result.mime_type is None

    @pytest.mark.asyncio
    async def test_size_mismatch(self, api_config, token, fake_drive, data_file):
        fake_drive.size_offset = 1
        async with DriveClient(token=token, config=api_config) as drive:
            with pytest.raises(IntegrityError, match="size mismatch") as exc_info:
                await drive.upload(data_file)

        assert exc_info.value.file_id in fake_drive.files

    @pytest.mark.asyncio
    async def test_provided_md5_mismatch(self, api_config, token, data_file):
        async with DriveClient(token=token, config=api_config) as drive:
            with pytest.raises(IntegrityError, match="MD5 mismatch"):
                await drive.upload(data_file, md5="0" * 32)

    @pytest.mark.asyncio
    async def test_empty_file(self, api_config, token, fake_drive, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")
        async with DriveClient(token=token, config=api_config) as drive:
            result = await drive.upload(path)

        assert result.size == 0
        assert result.md5 == hashlib.md5(b"").hexdigest()
        assert [r for r, _ in fake_drive.requests] == ["bytes */0"]

    @pytest.mark.asyncio
    async def test_bad_token(self, api_config, data_file):
        async with DriveClient(token="wrong", config=api_config) as drive:
            with pytest.raises(ProtocolError):
                await drive.upload(data_file)

    @pytest.mark.asyncio
    async def test_module_upload(self, api_config, token, fake_drive, data_file):
        result = await driveupload.upload(token=token, config=api_config, file_path=data_file)
        assert result.file_id in fake_drive.files


class TestConfigurationErrors:
    """Test suite for errors raised before any I/O."""

    @pytest.mark.asyncio
    async def test_no_auth_no_url(self, data_file):
        async with DriveClient() as drive:
            with pytest.raises(ConfigurationError, match="auth"):
                await drive.upload(data_file)

    @pytest.mark.asyncio
    async def test_verify_needs_auth(self, data_file):
        async with DriveClient() as drive:
            with pytest.raises(ConfigurationError):
                await drive.upload(data_file, upload_url="https://example/session")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path, token):
        async with DriveClient(token=token) as drive:
            with pytest.raises(ConfigurationError, match="No such file"):
                await drive.upload(tmp_path / "missing.bin")

    def test_auth_and_token_exclusive(self, token):
        with pytest.raises(ConfigurationError):
            DriveClient(auth=object(), token=token)

    @pytest.mark.asyncio
    async def test_get_upload_url_validates(self, token):
        async with DriveClient(token=token) as drive:
            with pytest.raises(ConfigurationError):
                await drive.get_upload_url("", 10)
            with pytest.raises(ConfigurationError):
                await drive.get_upload_url("a.bin", -1)

    @pytest.mark.asyncio
    async def test_facade_without_initiator(self, sample_data):
        facade = UploadFacade()
        config = UploadConfig(
            chunk_source=BytesChunkSource(sample_data),
            filename="a.bin",
            size=len(sample_data),
            verify=False
        )
        with pytest.raises(ConfigurationError, match="upload_url"):
            await facade.upload(config)

    @pytest.mark.asyncio
    async def test_facade_rejects_bad_source(self):
        facade = UploadFacade()
        config = UploadConfig(
            upload_url="https://example/session",
            chunk_source=42,
            size=10,
            verify=False
        )
        with pytest.raises(ConfigurationError, match="chunk_source"):
            await facade.upload(config)
