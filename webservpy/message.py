"""HTTP request, response and per-client state."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class HttpError(Exception):
    """An error that maps onto an HTTP status, e.g. ``"Error 404 : Not found"``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def code(self) -> str:
        """The status code: the second word of the message."""
        words = self.message.split()
        if len(words) > 1:
            return words[1]
        return words[0] if words else ""


@dataclass
class Request:
    """A parsed HTTP request together with its routing result."""

    method: str = ""
    uri: str = ""
    uri_path: str = ""
    version: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    raw_body: bytes = b""
    server: Any = None
    location: Any = None
    cgi: Any = None

    def reset(self) -> None:
        """Drop the routing result and release any CGI process."""
        if self.cgi is not None:
            self.cgi.close()
        self.cgi = None
        self.server = None
        self.location = None

    def attach_cgi(self, process: Any) -> None:
        """Attach a running CGI process; only one is allowed."""
        if self.cgi is not None:
            raise RuntimeError("CGI_process already exist")
        self.cgi = process


@dataclass
class Response:
    """An HTTP response being assembled and sent."""

    status_code: int = 200
    status_message: str = "OK"
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    payload: bytearray = field(default_factory=bytearray)
    use_payload: bool = False
    bytes_read: int = 0
    bytes_sent: int = 0

    def set_status(self, code: int, message: str) -> None:
        self.status_code = code
        self.status_message = message

    def add_body(self, content: str) -> None:
        self.body += content

    def encode_body(self) -> None:
        """Append the text body to the byte payload."""
        self.payload += self.body.encode("utf-8")

    def add_body_bytes(self, content: bytes) -> None:
        self.payload += content

    def to_bytes(self) -> bytes:
        """Status line, headers in key order, blank line, then the payload."""
        lines = [f"HTTP/1.1 {self.status_code} {self.status_message}\r\n"]
        lines.extend(f"{name}: {value}\r\n" for name, value in sorted(self.headers.items()))
        lines.append("\r\n")
        return "".join(lines).encode("utf-8") + bytes(self.payload)


@dataclass
class FormData:
    """One multipart form part, filled incrementally."""

    name: str = ""
    filename: str = ""
    content_type: str = ""
    body: bytearray = field(default_factory=bytearray)
    bytes_read: int = 0


class ClientState(enum.IntEnum):
    DONE = 0
    READING = 1
    PROCESSING = 2
    WRITING = 3


@dataclass
class Client:
    """State of one client connection."""

    sock: Any = None
    servers: list[Any] = field(default_factory=list)
    time_start: float = 0.0
    request: Request = field(default_factory=Request)
    response: Response = field(default_factory=Response)
    buffer: bytearray = field(default_factory=bytearray)
    state: ClientState = ClientState.READING
    response_ready: bool = False
    form: FormData = field(default_factory=FormData)

    @property
    def fd(self) -> int:
        return self.sock.fileno() if self.sock is not None else -1


def connection_header(request: Request) -> str | None:
    """The Connection header value a response to ``request`` should carry."""
    connection = request.headers.get("Connection", "")
    if connection == "keep-alive" or (
        request.version == "HTTP/1.1" and connection != "close"
    ):
        return "keep-alive"
    if connection == "close" or request.version == "HTTP/1.0":
        return "close"
    return None