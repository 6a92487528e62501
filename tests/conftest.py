from __future__ import annotations

import hashlib
import io
import json
import tarfile
import threading
import zipfile
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn
from typing import Any, Iterator
from urllib.parse import parse_qs, urlsplit

import pytest


class _ThreadedServer(ThreadingMixIn, HTTPServer):
    daemon_threads = True
    allow_reuse_address = True


@dataclass
class _Route:
    status: int
    body: bytes
    content_type: str
    send_length: bool


class _RouteHandler(BaseHTTPRequestHandler):
    server_version = "MockGitHub/1.0"
    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        query = {key: values[-1] for key, values in parse_qs(parts.query).items()}
        self.server.requests.append((parts.path, query))
        route = None
        if "page" in query:
            route = self.server.routes.get(f"{parts.path}?page={query['page']}")
        if route is None:
            route = self.server.routes.get(parts.path)
        if route is None:
            self.send_error(404)
            return
        self.send_response(route.status)
        self.send_header("Content-Type", route.content_type)
        if route.send_length:
            self.send_header("Content-Length", str(len(route.body)))
        else:
            self.send_header("Connection", "close")
            self.close_connection = True
        self.end_headers()
        self.wfile.write(route.body)

    def log_message(self, format: str, *args: object) -> None:
        return


class MockServer:
    def __init__(self, server: _ThreadedServer) -> None:
        self._server = server
        self.url = f"http://127.0.0.1:{server.server_port}"

    @property
    def requests(self) -> list[tuple[str, dict[str, str]]]:
        return self._server.requests

    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]

    def add(
        self,
        path: str,
        body: bytes | str,
        *,
        status: int = 200,
        content_type: str = "application/octet-stream",
        send_length: bool = True,
    ) -> str:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._server.routes[path] = _Route(status, body, content_type, send_length)
        return f"{self.url}{path}"

    def add_json(self, path: str, payload: Any, *, status: int = 200) -> str:
        return self.add(path, json.dumps(payload), status=status, content_type="application/json")


@pytest.fixture
def http_server() -> Iterator[MockServer]:
    server = _ThreadedServer(("127.0.0.1", 0), _RouteHandler)
    server.routes = {}
    server.requests = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield MockServer(server)
    finally:
        server.shutdown()
        server.server_close()


RELEASES_PATH = "/repos/neovim/neovim/releases"


def release_payload(
    tag_name: str,
    *,
    prerelease: bool = False,
    published_at: str = "2024-01-01T00:00:00Z",
    assets: list[tuple[str, str]] | None = None,
    commit: str = "abcdef1234567890",
) -> dict[str, Any]:
    return {
        "tag_name": tag_name,
        "prerelease": prerelease,
        "published_at": published_at,
        "target_commitish": commit,
        "assets": [
            {"name": name, "browser_download_url": url, "size": 0}
            for name, url in (assets or [])
        ],
    }


def make_tar_gz(files: dict[str, tuple[bytes, int]], *, dirs: dict[str, int] | None = None) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, mode in (dirs or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = mode
            archive.addfile(info)
        for name, (data, mode) in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_zip(files: dict[str, tuple[bytes, int]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, (data, mode) in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | mode) << 16
            archive.writestr(info, data)
    return buffer.getvalue()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
