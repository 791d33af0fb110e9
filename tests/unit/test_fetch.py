# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import ssl
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpcore
import pytest

from watchman.errors import InvalidTargetError
from watchman.http import fetch as fetch_module
from watchman.http.fetch import fetch_once, is_redirect, parse_target_url
from watchman.http.transport import build_ssl_context, build_transport


def _fake_resolver(host, port):
    return ["203.0.113.10"]


def _ok_backend():
    return httpcore.MockBackend(
        [
            b"HTTP/1.1 200 OK\r\n",
            b"Content-Type: text/plain\r\n",
            b"Content-Length: 11\r\n",
            b"\r\n",
            b"hello world",
        ]
    )


def test_is_redirect_covers_3xx_only():
    assert not is_redirect(0)
    assert not is_redirect(299)
    assert is_redirect(300)
    assert is_redirect(302)
    assert is_redirect(399)
    assert not is_redirect(400)


@pytest.mark.parametrize(
    "url",
    ["", "example.com/path", "ftp://example.com/file", "http://", "/relative/only"],
)
def test_parse_target_url_rejects_unusable_urls(url):
    with pytest.raises(InvalidTargetError):
        parse_target_url(url)


def test_parse_target_url_accepts_http_and_https():
    assert parse_target_url("https://example.com/a?b=1").host == "example.com"
    assert parse_target_url(" http://127.0.0.1:8080/ ").port == 8080


def test_fetch_once_secure_populates_every_phase():
    hop = fetch_once(
        "https://example.test/health",
        timeout=5.0,
        network_backend=_ok_backend(),
        resolver=_fake_resolver,
    )
    response = hop.response

    assert response.error == ""
    assert response.status == 200
    assert hop.location is None
    assert response.tls_handshake >= 0
    assert response.total > 0
    assert response.total >= response.start_transfer >= response.pre_transfer >= response.connect
    assert response.connect >= response.dns_lookup
    assert response.dns_lookup == response.name_lookup
    assert response.start_transfer == response.pre_transfer + response.server_processing


def test_fetch_once_plain_has_no_tls_or_pre_transfer():
    hop = fetch_once(
        "http://example.test/health",
        timeout=5.0,
        network_backend=_ok_backend(),
        resolver=_fake_resolver,
    )
    response = hop.response

    assert response.status == 200
    assert response.tls_handshake == 0
    assert response.pre_transfer == 0
    assert response.total >= response.start_transfer > 0


def test_fetch_once_returns_redirect_without_following():
    backend = httpcore.MockBackend(
        [
            b"HTTP/1.1 302 Found\r\n",
            b"Location: /next\r\n",
            b"Content-Length: 0\r\n",
            b"\r\n",
        ]
    )
    hop = fetch_once("http://example.test/start", timeout=5.0, network_backend=backend, resolver=_fake_resolver)

    assert hop.response.status == 302
    assert hop.location == "/next"
    assert hop.response.error == ""


def test_fetch_once_raises_for_malformed_url():
    with pytest.raises(InvalidTargetError):
        fetch_once("not a url", timeout=1.0)


def test_fetch_once_embeds_transport_setup_failure(monkeypatch):
    def broken_transport(*_args, **_kwargs):
        raise ImportError("Using http2=True, but the 'h2' package is not installed")

    monkeypatch.setattr(fetch_module, "build_transport", broken_transport)
    hop = fetch_once("https://example.test/", timeout=1.0, resolver=_fake_resolver)

    assert hop.response.status == 0
    assert "h2" in hop.response.error


def test_fetch_once_embeds_dns_failure():
    def resolver(host, port):
        raise OSError("Name or service not known")

    hop = fetch_once("http://unknown.example.test/", timeout=1.0, resolver=resolver)

    assert hop.response.status == 0
    assert "lookup unknown.example.test" in hop.response.error
    assert hop.response.total == 0


def test_fetch_once_against_loopback_plain(target_server):
    hop = fetch_once(f"{target_server.base_url}/ok", timeout=2.0, user_agent="watchman-test")
    response = hop.response

    assert response.status == 200
    assert response.error == ""
    # Literal address: DNS skipped.
    assert response.dns_lookup == 0
    assert response.name_lookup == 0
    assert response.tls_handshake == 0
    assert response.pre_transfer == 0
    assert response.total >= response.start_transfer >= response.connect >= 0
    assert target_server.seen == [("/ok", "watchman-test")]


def test_fetch_once_reports_non_ok_status_as_data(target_server):
    hop = fetch_once(f"{target_server.base_url}/missing", timeout=2.0)
    assert hop.response.status == 404
    assert hop.response.error == ""


def test_fetch_once_falls_back_across_resolved_addresses(target_server):
    port = target_server.server_address[1]
    hop = fetch_once(
        f"http://target.example.test:{port}/ok",
        timeout=2.0,
        resolver=lambda host, p: ["::1", "127.0.0.1"],
    )
    assert hop.response.status == 200
    assert hop.response.dns_lookup >= 0


def test_fetch_once_deadline_bounds_slow_server(target_server):
    started = time.monotonic()
    hop = fetch_once(f"{target_server.base_url}/slow", timeout=0.2)
    elapsed = time.monotonic() - started

    assert hop.response.status == 0
    assert hop.response.error
    assert hop.response.total == 0
    assert elapsed < 0.9


class TlsRecordingBackend(httpcore.MockBackend):
    """MockBackend that remembers the hostname and context of every TLS upgrade."""

    def __init__(self, buffer):
        super().__init__(buffer)
        self.handshakes = []

    def connect_tcp(self, host, port, timeout=None, local_address=None, socket_options=None):
        stream = super().connect_tcp(host, port, timeout, local_address, socket_options)
        upgrade = stream.start_tls

        def start_tls(ssl_context, server_hostname=None, timeout=None):
            self.handshakes.append((server_hostname, ssl_context))
            return upgrade(ssl_context, server_hostname, timeout)

        stream.start_tls = start_tls
        return stream


def _ok_lines():
    return [b"HTTP/1.1 200 OK\r\n", b"Content-Length: 2\r\n", b"\r\n", b"ok"]


def test_build_ssl_context_follows_verify_certs():
    verifying = build_ssl_context(True)
    assert verifying.verify_mode == ssl.CERT_REQUIRED
    assert verifying.check_hostname is True

    trusting = build_ssl_context(False)
    assert trusting.verify_mode == ssl.CERT_NONE
    assert trusting.check_hostname is False


def test_build_transport_enables_http2_for_secure_targets_only():
    backend = httpcore.MockBackend([])

    secure = build_transport(backend, secure=True, verify_certs=True)
    assert secure._pool._http2 is True
    assert secure._pool._ssl_context.verify_mode == ssl.CERT_REQUIRED

    plain = build_transport(backend, secure=False, verify_certs=True)
    assert plain._pool._http2 is False


@pytest.mark.parametrize("verify_certs,verify_mode", [(True, ssl.CERT_REQUIRED), (False, ssl.CERT_NONE)])
def test_fetch_once_handshakes_with_request_host_and_trust_setting(monkeypatch, verify_certs, verify_mode):
    sni_hostnames = []
    real_build_transport = fetch_module.build_transport

    def recording_build_transport(*args, **kwargs):
        transport = real_build_transport(*args, **kwargs)
        handle_request = transport.handle_request

        def handle(request):
            sni_hostnames.append(request.extensions.get("sni_hostname"))
            return handle_request(request)

        transport.handle_request = handle
        return transport

    monkeypatch.setattr(fetch_module, "build_transport", recording_build_transport)
    backend = TlsRecordingBackend(_ok_lines())

    hop = fetch_once(
        "https://secure.example.test/",
        timeout=5.0,
        verify_certs=verify_certs,
        network_backend=backend,
        resolver=_fake_resolver,
    )

    assert hop.response.status == 200
    assert sni_hostnames == ["secure.example.test"]
    [(server_hostname, ssl_context)] = backend.handshakes
    assert server_hostname == "secure.example.test"
    assert ssl_context.verify_mode == verify_mode


def test_fetch_once_is_not_held_up_by_other_hung_lookups():
    release = threading.Event()

    def hung_resolver(host, port):
        release.wait(5.0)
        return ["203.0.113.99"]

    def hung_fetch(index):
        return fetch_once(f"http://hung-{index}.example.test/", timeout=0.2, resolver=hung_resolver)

    try:
        with ThreadPoolExecutor(max_workers=24) as pool:
            hung = list(pool.map(hung_fetch, range(24)))
        assert all(hop.response.status == 0 for hop in hung)

        hop = fetch_once(
            "http://fast.example.test/",
            timeout=0.5,
            network_backend=_ok_backend(),
            resolver=_fake_resolver,
        )
    finally:
        release.set()

    assert hop.response.error == ""
    assert hop.response.status == 200
    assert hop.response.dns_lookup < 200_000_000
