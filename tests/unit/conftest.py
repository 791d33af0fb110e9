# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _TargetHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self):  # noqa: N802
        self.server.seen.append((self.path, self.headers.get("User-Agent")))
        try:
            self._route()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _route(self):
        path = self.path
        if path == "/ok":
            self._reply(200, b"hello world")
        elif path == "/slow":
            time.sleep(1.0)
            self._reply(200, b"late")
        elif path == "/missing":
            self._reply(404, b"not found")
        elif path == "/no-location":
            self._reply(302, b"")
        elif path.startswith("/chain/"):
            remaining = int(path.rsplit("/", 1)[1])
            if remaining <= 0:
                self._reply(200, b"end of chain")
            else:
                self._reply(302, b"", location=f"/chain/{remaining - 1}")
        elif path == "/loop/a":
            self._reply(302, b"", location="/loop/b")
        elif path == "/loop/b":
            self._reply(302, b"", location="/loop/a")
        elif path == "/relative":
            self._reply(301, b"", location="ok")
        else:
            self._reply(404, b"")

    def _reply(self, status, body, location=None):
        self.send_response(status)
        if location is not None:
            self.send_header("Location", location)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):  # noqa: A002
        pass


class _TargetServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), _TargetHandler)
        self.seen = []

    @property
    def base_url(self):
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    @property
    def paths(self):
        return [path for path, _ in self.seen]


@pytest.fixture
def target_server():
    server = _TargetServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
