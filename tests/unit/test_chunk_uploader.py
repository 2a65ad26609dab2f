"""Tests for ChunkUploader response classification and transport."""
import json

import aiohttp
import pytest
from multidict import CIMultiDict

from driveupload.core.api import StaticTokenAuth, DriveSessionInitiator
from driveupload.core.upload.services import ChunkUploader
from driveupload.core.exceptions import ProtocolError, TransportError


class TestClassify:
    """Test suite for response classification."""

    @pytest.fixture
    def uploader(self):
        return ChunkUploader("https://example/session", total_size=10000)

    def test_content_range(self, uploader):
        assert uploader.content_range("0-4095") == "bytes 0-4095/10000"
        assert uploader.content_range("*") == "bytes */10000"

    def test_resume_with_range(self, uploader):
        """Test 308 with Range gives the next offset."""
        outcome = uploader._classify(308, CIMultiDict({'Range': 'bytes=0-999'}), b"")

        assert outcome.ended_normally
        assert outcome.resume_offset == 1000
        assert outcome.file_id is None

    def test_resume_without_range(self, uploader):
        """Test 308 without Range means nothing committed."""
        outcome = uploader._classify(308, CIMultiDict(), b"")
        assert outcome.resume_offset == 0

    def test_range_header_case_insensitive(self, uploader):
        outcome = uploader._classify(308, CIMultiDict({'range': 'bytes=0-4095'}), b"")
        assert outcome.resume_offset == 4096

    @pytest.mark.parametrize("header", ["bytes=100-999", "bytes 0-999", "bytes=0-", "items=0-5"])
    def test_bad_range_header(self, uploader, header):
        outcome = uploader._classify(308, CIMultiDict({'Range': header}), b"")

        assert not outcome.ended_normally
        assert isinstance(outcome.error, ProtocolError)

    def test_range_beyond_total(self, uploader):
        """Test committed offset past the declared size is rejected."""
        outcome = uploader._classify(308, CIMultiDict({'Range': 'bytes=0-10000'}), b"")

        assert not outcome.ended_normally
        assert isinstance(outcome.error, ProtocolError)

    @pytest.mark.parametrize("status", [200, 201])
    def test_complete(self, uploader, status):
        body = json.dumps({'kind': 'drive#file', 'id': 'abc123'}).encode()
        outcome = uploader._classify(status, CIMultiDict(), body)

        assert outcome.ended_normally
        assert outcome.file_id == "abc123"
        assert outcome.resume_offset is None

    @pytest.mark.parametrize("body", [b"not json", b"[]", b"{}", b'{"id": 12}', b'{"id": ""}'])
    def test_complete_without_id(self, uploader, body):
        outcome = uploader._classify(200, CIMultiDict(), body)

        assert not outcome.ended_normally
        assert isinstance(outcome.error, ProtocolError)

    @pytest.mark.parametrize("status", [400, 404, 410, 500, 503])
    def test_unexpected_status(self, uploader, status):
        outcome = uploader._classify(status, CIMultiDict(), b"oops")

        assert not outcome.ended_normally
        assert outcome.status == status
        assert outcome.error.status_code == status


class TestPut:
    """Test suite for PUTs against a local resumable server."""

    @pytest.fixture
    def auth(self, token):
        return StaticTokenAuth(token)

    async def start_session(self, api_config, auth, size):
        async with aiohttp.ClientSession() as session:
            initiator = DriveSessionInitiator(session, auth, api_config)
            return await initiator.initiate("data.bin", size)

    @staticmethod
    async def body(data):
        for i in range(0, len(data), 1000):
            yield data[i:i + 1000]

    @pytest.mark.asyncio
    async def test_chunks_and_probe(self, api_config, auth, fake_drive):
        """Test chunk PUTs advance and the final chunk completes."""
        data = bytes(range(256)) * 20
        url = await self.start_session(api_config, auth, len(data))
        uploader = ChunkUploader(url, len(data))
        try:
            probe = await uploader.put(None, 0, "*")
            assert probe.resume_offset == 0

            first = await uploader.put(self.body(data[:3000]), 3000, "0-2999")
            assert first.resume_offset == 3000

            probe = await uploader.put(None, 0, "*")
            assert probe.resume_offset == 3000

            last = await uploader.put(self.body(data[3000:]), len(data) - 3000, f"3000-{len(data) - 1}")
            assert last.ended_normally
            assert last.file_id in fake_drive.files
            assert bytes(fake_drive.files[last.file_id]['data']) == data

            final_probe = await uploader.put(None, 0, "*")
            assert final_probe.file_id == last.file_id
        finally:
            await uploader.close()

        assert fake_drive.requests[0] == ("bytes */5120", 0)
        assert fake_drive.requests[1] == ("bytes 0-2999/5120", 3000)

    @pytest.mark.asyncio
    async def test_partial_commit(self, api_config, auth, fake_drive):
        """Test server committing less than sent."""
        fake_drive.commit_limit = 1000
        url = await self.start_session(api_config, auth, 5000)
        async with aiohttp.ClientSession() as session:
            uploader = ChunkUploader(url, 5000, session=session)
            outcome = await uploader.put(self.body(b"x" * 4000), 4000, "0-3999")

        assert outcome.resume_offset == 1000

    @pytest.mark.asyncio
    async def test_server_error(self, api_config, auth, fake_drive):
        fake_drive.fail_probes = 1
        url = await self.start_session(api_config, auth, 10)
        uploader = ChunkUploader(url, 10)
        try:
            outcome = await uploader.put(None, 0, "*")
        finally:
            await uploader.close()

        assert not outcome.ended_normally
        assert isinstance(outcome.error, ProtocolError)
        assert outcome.status == 503

    @pytest.mark.asyncio
    async def test_connection_refused(self, unused_tcp_port):
        """Test transport failure is returned, not raised."""
        uploader = ChunkUploader(f"http://127.0.0.1:{unused_tcp_port}/session", 10)
        try:
            outcome = await uploader.put(None, 0, "*")
        finally:
            await uploader.close()

        assert not outcome.ended_normally
        assert isinstance(outcome.error, TransportError)
        assert outcome.status is None
