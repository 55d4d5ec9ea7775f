"""Running CGI scripts and collecting their output."""

from __future__ import annotations

import os
import random
import signal
import subprocess
import time
from pathlib import Path
from typing import IO, Mapping

from .config import Location
from .message import Client, HttpError, Request, Response, connection_header
from .pages import http_date

CHUNK_SIZE = 100000
CGI_TIMEOUT = 300.0
TEMP_DIR = ".tmp"
_NAME_LENGTH = 25
_NAME_ALPHABET = "".join(chr(48 + offset) for offset in range(74))
_INTERNAL_ERROR = "Error 500 : Internal Server Error"
_rng = random.SystemRandom()


def _temp_name() -> str:
    return "".join(_rng.choice(_NAME_ALPHABET) for _ in range(_NAME_LENGTH))


def _close_quietly(stream: IO[bytes] | None) -> None:
    if stream is None or stream.closed:
        return
    try:
        stream.close()
    except OSError:
        pass


class CgiProcess:
    """A running CGI child with its pipes and the file collecting its output."""

    def __init__(self, process: subprocess.Popen, temp_dir: str | Path = TEMP_DIR) -> None:
        self.process = process
        self.bytes_written = 0
        self.status: int | None = None
        directory = Path(temp_dir)
        directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        self.temp_path = directory / (_temp_name() + ".html")
        self.temp_file: IO[bytes] = open(self.temp_path, "wb")
        for stream in (process.stdin, process.stdout):
            if stream is not None:
                os.set_blocking(stream.fileno(), False)

    @property
    def pid(self) -> int:
        return self.process.pid

    def poll(self) -> int | None:
        """Refresh and return the exit status; None while still running."""
        self.status = self.process.poll()
        return self.status

    @property
    def input_open(self) -> bool:
        stdin = self.process.stdin
        return stdin is not None and not stdin.closed

    @property
    def output_open(self) -> bool:
        stdout = self.process.stdout
        return stdout is not None and not stdout.closed

    def close_input(self) -> None:
        _close_quietly(self.process.stdin)

    def close_output(self) -> None:
        _close_quietly(self.process.stdout)

    def close_temp(self) -> None:
        _close_quietly(self.temp_file)

    def close(self) -> None:
        """Close the pipes and temp file, stop the child and remove the file."""
        self.close_input()
        self.close_output()
        self.close_temp()
        if self.process.poll() is None:
            self.process.kill()
            self.process.wait()
        self.temp_path.unlink(missing_ok=True)


def build_environment(request: Request, base_env: Mapping[str, str]) -> dict[str, str]:
    """The environment handed to a CGI child for ``request``."""
    headers = request.headers
    host = headers.get("Host", "")
    colon = host.rfind(":")
    port = host[colon:colon + 1] if colon != -1 else ""
    server_name = request.server.server_name if request.server is not None else ""
    return {
        "PATH": base_env.get("PATH", ""),
        "SERVER_SOFTWARE": "",
        "SERVER_NAME": server_name,
        "GATEWAY_INTERFACE": "CGI/1.1",
        "SERVER_PROTOCOL": request.version,
        "SERVER_PORT": port,
        "REQUEST_METHOD": request.method,
        "PATH_INFO": "",
        "PATH_TRANSLATED": request.uri_path,
        "SCRIPT_NAME": request.uri,
        "QUERY_STRING": "",
        "REMOTE_HOST": "",
        "REMOTE_ADDR": "",
        "AUTH_TYPE": "",
        "REMOTE_USER": "",
        "REMOTE_IDENT": "",
        "CONTENT_TYPE": "",
        "CONTENT_LENGTH": "",
        "HTTP_ACCEPT": headers.get("Accept", ""),
        "HTTP_USER_AGENT": headers.get("User-Agent", ""),
        "HTTP_COOKIE": headers.get("Cookie", ""),
        "HTTP_REFERER": headers.get("Referer", ""),
    }


def _child_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def start_cgi(request: Request, location: Location) -> CgiProcess:
    """Start the CGI handler for the request's file and attach it to ``request``."""
    uri_path = request.uri_path
    dot = uri_path.rfind(".")
    extension = uri_path[dot:] if dot != -1 else ""
    interpreter = location.cgi.get(extension)
    if interpreter is None:
        raise HttpError(_INTERNAL_ERROR)
    if interpreter:
        args = [interpreter, uri_path]
        executable = None
    else:
        args = [uri_path[request.uri.rfind("/") + 1:]]
        executable = uri_path
    try:
        child = subprocess.Popen(
            args,
            executable=executable,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            env=build_environment(request, os.environ),
            preexec_fn=_child_signals if os.name == "posix" else None,
        )
    except (OSError, ValueError) as exc:
        raise HttpError(_INTERNAL_ERROR) from exc
    process = CgiProcess(child)
    try:
        request.attach_cgi(process)
    except RuntimeError:
        process.close()
        raise
    return process


def cgi_response(request: Request) -> Response:
    """A 200 response whose body is the collected CGI output."""
    try:
        text = Path(request.cgi.temp_path).read_bytes().decode("utf-8", "replace")
    except OSError:
        text = ""
    body = text + "\n"
    response = Response()
    response.body = body
    response.set_status(200, "OK")
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = "text/html; charset=UTF-8"
    connection = connection_header(request)
    if connection is not None:
        response.headers["Connection"] = connection
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))
    return response


def _feed(process: CgiProcess, body: bytes) -> None:
    if not process.input_open:
        return
    if process.bytes_written >= len(body):
        process.close_input()
        return
    chunk = body[process.bytes_written:process.bytes_written + CHUNK_SIZE]
    try:
        written = os.write(process.process.stdin.fileno(), chunk)
    except BlockingIOError:
        return
    except OSError:
        process.close_input()
        return
    process.bytes_written += written


def _drain(process: CgiProcess) -> int:
    if not process.output_open:
        return 0
    try:
        data = os.read(process.process.stdout.fileno(), CHUNK_SIZE)
    except BlockingIOError:
        return -1
    if data:
        process.temp_file.write(data)
    return len(data)


def pump_cgi(client: Client) -> None:
    """Move one chunk of request body in and of output out of the CGI child.

    When the child has finished the response is stored on the client and
    ``response_ready`` is set. A failed or timed-out child raises a 500
    :class:`HttpError`.
    """
    process = client.request.cgi
    if process is None:
        raise RuntimeError("no CGI process attached to the request")
    _feed(process, bytes(client.request.body))
    count = _drain(process)
    status = process.poll()
    if status is not None and count < CHUNK_SIZE:
        process.close_temp()
        process.close_output()
        if status:
            raise HttpError(_INTERNAL_ERROR)
        client.response = cgi_response(client.request)
        client.response_ready = True
    elif status is None and time.monotonic() - client.time_start > CGI_TIMEOUT:
        process.close_input()
        process.close_output()
        process.close_temp()
        raise HttpError(_INTERNAL_ERROR)