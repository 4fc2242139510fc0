"""Shared test fixtures for chat_overlay tests."""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
from PySide6.QtCore import QBuffer, QCoreApplication, QIODevice
from PySide6.QtGui import QColor, QImage

from chat_overlay.chat.emoji.fetcher import ProbeResult
from chat_overlay.chat.emoji.models import EmojiRecord, EmojiType

# Two 1x1 frames, 100ms each, looping
ANIMATED_GIF = (
    b"GIF89a"
    b"\x01\x00\x01\x00\x80\x00\x00"
    b"\xff\xff\xff\x00\x00\x00"
    b"\x21\xff\x0bNETSCAPE2.0\x03\x01\x00\x00\x00"
    b"\x21\xf9\x04\x00\x0a\x00\x00\x00"
    b"\x2c\x00\x00\x00\x00\x01\x00\x01\x00\x00"
    b"\x02\x02\x44\x01\x00"
    b"\x21\xf9\x04\x00\x0a\x00\x00\x00"
    b"\x2c\x00\x00\x00\x00\x01\x00\x01\x00\x00"
    b"\x02\x02\x44\x01\x00"
    b"\x3b"
)


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def _encode_png(image: QImage) -> bytes:
    buffer = QBuffer()
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    image.save(buffer, "PNG")
    data = bytes(buffer.data())
    buffer.close()
    return data


@pytest.fixture
def make_png():
    """Factory for PNG payloads of a given size."""

    def _make(width: int = 28, height: int = 28, alpha: bool = True, color: str = "#ff0000") -> bytes:
        fmt = QImage.Format.Format_ARGB32 if alpha else QImage.Format.Format_RGB32
        image = QImage(width, height, fmt)
        image.fill(QColor(color))
        return _encode_png(image)

    return _make


@pytest.fixture
def opaque_emote_png() -> bytes:
    """4x4 white background (no alpha channel) with one black pixel."""
    image = QImage(4, 4, QImage.Format.Format_RGB32)
    image.fill(QColor("#ffffff"))
    image.setPixelColor(1, 1, QColor("#000000"))
    return _encode_png(image)


@pytest.fixture
def animated_gif() -> bytes:
    return ANIMATED_GIF


class FakeFetcher:
    """Stand-in for ResourceFetcher that records every network attempt."""

    def __init__(self, responses: dict[str, tuple[ProbeResult, bytes | None]] | None = None):
        self.responses = dict(responses or {})
        self.probes: list[str] = []
        self.fetches: list[str] = []

    def probe(self, url: str) -> ProbeResult:
        self.probes.append(url)
        return self.responses.get(url, (ProbeResult.UNREACHABLE, None))[0]

    def fetch_bytes(self, url: str) -> bytes | None:
        self.fetches.append(url)
        return self.responses.get(url, (ProbeResult.UNREACHABLE, None))[1]


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def kappa():
    return EmojiRecord(
        identifier="Kappa",
        url="https://cdn.example.com/emoticons/25/1.0",
        type=EmojiType.TWITCH_V3,
    )


@pytest.fixture
def ffz_mod_badge():
    return EmojiRecord(
        identifier="ffz-mod",
        url="https://cdn.example.com/ffz/mod.png",
        type=EmojiType.FRANKERFACEZ_BADGE,
        replaces="moderator",
        tint_color="#34ae0a",
    )


class _RouteHandler(BaseHTTPRequestHandler):
    def _respond(self, include_body: bool) -> None:
        self.server.hits.append((self.command, self.path))
        route = self.server.routes.get(self.path)
        if route is None:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        status, content_type, body = route
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def do_GET(self):
        self._respond(include_body=True)

    def do_HEAD(self):
        self._respond(include_body=False)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    """Local HTTP server; add ``server.routes[path] = (status, content_type, body)``."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _RouteHandler)
    server.routes = {}
    server.hits = []
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
