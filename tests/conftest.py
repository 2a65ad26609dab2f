"""Pytest fixtures for DriveUpload tests."""
import json
import hashlib
import itertools
import re

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from driveupload.core.api import APIConfig

TEST_TOKEN = 'test-token'

CONTENT_RANGE = re.compile(r'^bytes (?:(\d+)-(\d+)|\*)/(\d+)$')


class FakeDrive:
    """
    In-process stand-in for the Drive resumable upload and files APIs.

    Knobs:
        commit_limit: Max bytes committed per chunk PUT (None = all)
        fail_puts: Number of upcoming chunk PUTs answered with 503
        fail_probes: Number of upcoming probes answered with 503
        size_offset: Added to the reported size in file metadata
        md5_override: Reported md5Checksum instead of the real one
    """

    def __init__(self):
        self.sessions = {}
        self.files = {}
        self.requests = []
        self.commit_limit = None
        self.fail_puts = 0
        self.fail_probes = 0
        self.size_offset = 0
        self.md5_override = None
        self._ids = itertools.count(1)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post('/upload/drive/v3/files', self.initiate)
        app.router.add_put('/upload/session', self.put)
        app.router.add_get('/drive/v3/files/{file_id}', self.get_file)
        return app

    def _authorized(self, request) -> bool:
        return request.headers.get('Authorization') == f"Bearer {TEST_TOKEN}"

    async def initiate(self, request):
        if not self._authorized(request):
            return web.Response(status=401)
        body = json.loads(await request.read())
        upload_id = f"u{next(self._ids)}"
        self.sessions[upload_id] = {
            'name': body['name'],
            'parents': body.get('parents'),
            'size': int(request.headers['X-Upload-Content-Length']),
            'mime_type': request.headers.get('X-Upload-Content-Type', 'application/octet-stream'),
            'data': bytearray(),
            'file_id': None,
        }
        location = str(request.url.with_path('/upload/session').with_query(upload_id=upload_id))
        return web.Response(status=200, headers={'Location': location})

    def _continue(self, upload) -> web.Response:
        committed = len(upload['data'])
        headers = {'Range': f"bytes=0-{committed - 1}"} if committed else {}
        return web.Response(status=308, headers=headers)

    def _finish(self, upload) -> web.Response:
        if upload['file_id'] is None:
            file_id = f"file{next(self._ids)}"
            upload['file_id'] = file_id
            self.files[file_id] = upload
        return web.json_response({'kind': 'drive#file', 'id': upload['file_id']})

    async def put(self, request):
        upload = self.sessions.get(request.query.get('upload_id'))
        if upload is None:
            return web.Response(status=404)

        match = CONTENT_RANGE.match(request.headers.get('Content-Range', ''))
        body = await request.read()
        self.requests.append((request.headers.get('Content-Range'), len(body)))
        if not match or int(match.group(3)) != upload['size']:
            return web.Response(status=400)

        if match.group(1) is None:
            if self.fail_probes:
                self.fail_probes -= 1
                return web.Response(status=503)
            if len(upload['data']) == upload['size']:
                return self._finish(upload)
            return self._continue(upload)

        if self.fail_puts:
            self.fail_puts -= 1
            return web.Response(status=503)

        start, end = int(match.group(1)), int(match.group(2))
        if start > len(upload['data']) or end - start + 1 != len(body):
            return web.Response(status=400)
        if self.commit_limit is not None:
            body = body[:self.commit_limit]
        del upload['data'][start:]
        upload['data'] += body

        if len(upload['data']) == upload['size']:
            return self._finish(upload)
        return self._continue(upload)

    async def get_file(self, request):
        if not self._authorized(request):
            return web.Response(status=401)
        upload = self.files.get(request.match_info['file_id'])
        if upload is None:
            return web.Response(status=404)
        data = bytes(upload['data'])
        return web.json_response({
            'size': str(len(data) + self.size_offset),
            'md5Checksum': self.md5_override or hashlib.md5(data).hexdigest(),
            'mimeType': upload['mime_type'],
        })


@pytest.fixture
def fake_drive():
    """Fresh fake Drive backend."""
    return FakeDrive()


@pytest_asyncio.fixture
async def drive_server(fake_drive):
    """Run the fake Drive backend on a local port."""
    async with TestServer(fake_drive.app()) as server:
        yield server


@pytest.fixture
def api_config(drive_server):
    """APIConfig pointing at the local fake Drive backend."""
    base = f"http://{drive_server.host}:{drive_server.port}"
    return APIConfig(
        upload_api_url=f"{base}/upload/drive/v3/files?uploadType=resumable",
        files_api_url=f"{base}/drive/v3/files",
        upload_url_pattern=re.escape(f"{base}/upload/session?upload_id=") + r'.+$',
    )


@pytest.fixture
def sample_data():
    """Returns 700 KiB of non-repeating test data."""
    return b''.join(hashlib.sha256(str(i).encode()).digest() for i in range(700 * 32))


@pytest.fixture
def token():
    """Bearer token accepted by the fake Drive backend."""
    return TEST_TOKEN
