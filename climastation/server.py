"""HTTP interface: request routing, form parsing and a small TCP server."""

from __future__ import annotations

import logging
import re
import socketserver
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .aht20 import Reading
from .monitor import Alarm, Limits, Offsets, PageSelector
from .pages import Page, html_for

logger = logging.getLogger(__name__)

_JSON = "application/json"
_HTML = "text/html; charset=utf-8"
_STATUS_SUCCESS = b'{"status":"success"}'

_NUMBER = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_CONTENT_LENGTH = re.compile(rb"^content-length:\s*(\d+)\s*$", re.IGNORECASE | re.MULTILINE)

_OFFSET_FIELDS = (
    ("temp_offset=", "temperature"),
    ("umid_offset=", "humidity"),
    ("press_offset=", "pressure"),
)

_CONFIG_FIELDS = (
    ("temp_min=", "temp_min"),
    ("temp_max=", "temp_max"),
    ("umid_min=", "humidity_min"),
    ("umid_max=", "humidity_max"),
    ("press_min=", "pressure_min"),
    ("press_max=", "pressure_max"),
)


@dataclass
class MonitorState:
    """Everything the web interface reads and changes, shared with the station."""

    limits: Limits = field(default_factory=Limits)
    offsets: Offsets = field(default_factory=Offsets)
    reading: Reading = field(default_factory=lambda: Reading(0.0, 0.0))
    pressure_pa: int = 0
    pages: PageSelector = field(default_factory=PageSelector)
    alarm: Alarm = Alarm.NORMAL
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


def _leading_float(text: str, pos: int = 0) -> tuple[float, int] | None:
    match = _NUMBER.match(text, pos)
    if match is None:
        return None
    return float(match.group(1)), match.end()


def _atof(text: str) -> float:
    parsed = _leading_float(text)
    return parsed[0] if parsed else 0.0


def _body_of(request: str) -> str | None:
    head, sep, body = request.partition("\r\n\r\n")
    return body if sep else None


def parse_offsets(body: str, offsets: Offsets) -> int:
    """Update ``offsets`` from ``temp_offset=``, ``umid_offset=`` and ``press_offset=``.

    Each key may appear anywhere; a value that is not a number counts as 0.
    Returns how many offsets were set.
    """
    updated = 0
    for key, attr in _OFFSET_FIELDS:
        position = body.find(key)
        if position < 0:
            continue
        setattr(offsets, attr, _atof(body[position + len(key):]))
        updated += 1
    return updated


def parse_config(body: str, limits: Limits) -> int:
    """Update ``limits`` from a form in the fixed order the home page sends.

    Parsing stops at the first field that does not match; fields before it
    keep their new values. Returns how many limits were set.
    """
    position = 0
    updated = 0
    for index, (key, attr) in enumerate(_CONFIG_FIELDS):
        prefix = key if index == 0 else "&" + key
        if not body.startswith(prefix, position):
            break
        parsed = _leading_float(body, position + len(prefix))
        if parsed is None:
            break
        value, position = parsed
        setattr(limits, attr, value)
        updated += 1
    return updated


def _http_response(body: bytes, content_type: str, cors: bool) -> bytes:
    lines = ["HTTP/1.1 200 OK", f"Content-Type: {content_type}"]
    if cors:
        lines.append("Access-Control-Allow-Origin: *")
    lines += [f"Content-Length: {len(body)}", "Connection: close", "", ""]
    return "\r\n".join(lines).encode("ascii") + body


def _json(payload: str) -> bytes:
    return _http_response(payload.encode("ascii"), _JSON, cors=True)


def _html(page: Page | int) -> bytes:
    return _http_response(html_for(page).encode("utf-8"), _HTML, cors=False)


def _dados(request: str, state: MonitorState, now_ms: int) -> bytes:
    temperature = state.reading.temperature + state.offsets.temperature
    humidity = state.reading.humidity + state.offsets.humidity
    pressure = state.pressure_pa + state.offsets.pressure * 100
    return _json(
        f'{{"temperatura":{temperature:.2f},"umidade":{humidity:.2f},'
        f'"pressao":{pressure:.2f},"timestamp":{now_ms & 0xFFFFFFFF}}}'
    )


def _set_offset(request: str, state: MonitorState, now_ms: int) -> bytes:
    body = _body_of(request)
    if body is not None:
        logger.debug("Body recebido: %.100s", body)
        parse_offsets(body, state.offsets)
        logger.info(
            "Novos offsets: temp=%.2f, umid=%.2f, press=%.2f",
            state.offsets.temperature,
            state.offsets.humidity,
            state.offsets.pressure,
        )
    return _http_response(_STATUS_SUCCESS, _JSON, cors=True)


def _get_offset(request: str, state: MonitorState, now_ms: int) -> bytes:
    offsets = state.offsets
    return _json(
        f'{{"temp_offset":{offsets.temperature:.2f},'
        f'"umid_offset":{offsets.humidity:.2f},'
        f'"press_offset":{offsets.pressure:.2f}}}'
    )


def _set_config(request: str, state: MonitorState, now_ms: int) -> bytes:
    body = _body_of(request)
    if body is not None:
        parse_config(body, state.limits)
    return _http_response(_STATUS_SUCCESS, _JSON, cors=True)


def _get_config(request: str, state: MonitorState, now_ms: int) -> bytes:
    limits = state.limits
    return _json(
        f'{{"temp_min":{limits.temp_min:.1f},"temp_max":{limits.temp_max:.1f},'
        f'"umid_min":{limits.humidity_min:.1f},"umid_max":{limits.humidity_max:.1f},'
        f'"press_min":{limits.pressure_min:.1f},"press_max":{limits.pressure_max:.1f}}}'
    )


def _pagina(request: str, state: MonitorState, now_ms: int) -> bytes:
    return _json(f'{{"pagina":{state.pages.page}}}')


def _static(page: Page) -> Callable[[str, MonitorState, int], bytes]:
    return lambda request, state, now_ms: _html(page)


_ROUTES: tuple[tuple[str, Callable[[str, MonitorState, int], bytes]], ...] = (
    ("GET /dados", _dados),
    ("GET /temp", _static(Page.TEMPERATURE)),
    ("GET /umid", _static(Page.HUMIDITY)),
    ("GET /press", _static(Page.PRESSURE)),
    ("GET /offset", _static(Page.OFFSET)),
    ("POST /setoffset", _set_offset),
    ("GET /getoffset", _get_offset),
    ("POST /config", _set_config),
    ("GET /config", _get_config),
    ("GET /pagina", _pagina),
)


def handle_request(request: bytes | str, state: MonitorState, now_ms: int) -> bytes:
    """Route one raw HTTP request and return the full response bytes.

    Routes are matched by substring in a fixed order; anything unmatched
    gets the page currently selected by the button.
    """
    text = request.decode("utf-8", errors="replace") if isinstance(request, bytes) else request
    logger.debug("Requisicao recebida: %.50s", text)
    for needle, handler in _ROUTES:
        if needle in text:
            return handler(text, state, now_ms)
    return _html(state.pages.page)


class _Handler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        self.request.settimeout(5.0)
        data = self._receive()
        if not data:
            return
        self.request.sendall(self.server.monitor.respond(data))

    def _receive(self) -> bytes:
        data = b""
        while True:
            try:
                chunk = self.request.recv(4096)
            except OSError:
                return data
            if not chunk:
                return data
            data += chunk
            head, sep, body = data.partition(b"\r\n\r\n")
            if not sep:
                continue
            match = _CONTENT_LENGTH.search(head)
            expected = int(match.group(1)) if match else 0
            if len(body) >= expected:
                return data


class _TCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], monitor: MonitorServer) -> None:
        self.monitor = monitor
        super().__init__(address, _Handler)


class MonitorServer:
    """Serves the monitoring web interface over TCP, one request per connection."""

    def __init__(self, state: MonitorState, host: str = "0.0.0.0", port: int = 80) -> None:
        self.state = state
        self._started = time.monotonic()
        self._serving = False
        self._server = _TCPServer((host, port), self)

    @property
    def server_address(self) -> tuple[str, int]:
        """The bound host and port."""
        host, port = self._server.server_address[:2]
        return host, port

    def respond(self, request: bytes) -> bytes:
        """Answer one raw request against the shared state."""
        now_ms = int((time.monotonic() - self._started) * 1000)
        with self.state.lock:
            return handle_request(request, self.state, now_ms)

    def serve_forever(self) -> None:
        """Handle requests until :meth:`shutdown` is called."""
        self._serving = True
        logger.info("Servidor HTTP iniciado na porta %d", self.server_address[1])
        self._server.serve_forever()

    def shutdown(self) -> None:
        """Stop serving and release the socket."""
        if self._serving:
            self._server.shutdown()
            self._serving = False
        self._server.server_close()

    def __enter__(self) -> MonitorServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()