"""Serving regular files in chunks for GET requests."""

from __future__ import annotations

import os

from .message import Client, HttpError, connection_header
from .pages import http_date, mime_type

CHUNK_READ = 100000


def serve_file(client: Client, path: str) -> None:
    """Read the next chunk of ``path`` into the client's response.

    Once the whole file is read the response headers are filled in and
    ``client.response_ready`` is set.
    """
    response = client.response
    try:
        with open(path, "rb") as handle:
            handle.seek(0, os.SEEK_END)
            file_size = handle.tell()
            handle.seek(response.bytes_read)
            remaining = file_size - response.bytes_read
            chunk = handle.read(min(CHUNK_READ, remaining))
    except OSError as exc:
        raise HttpError("error 403 : Access denied") from exc
    response.add_body_bytes(chunk)
    response.bytes_read += len(chunk)
    if remaining < CHUNK_READ:
        client.response_ready = True
    if not client.response_ready:
        return
    response.use_payload = True
    response.headers["Content-Length"] = str(len(response.payload))
    response.set_status(200, "OK")
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = mime_type(path)
    response.headers["Location"] = path
    connection = connection_header(client.request)
    if connection is not None:
        response.headers["Connection"] = connection


def get_response(client: Client, path: str) -> None:
    """Check that ``path`` exists and is readable, then serve it."""
    if not os.path.exists(path):
        raise HttpError("error 404 : Resource not found")
    try:
        with open(path, "rb"):
            pass
    except OSError as exc:
        raise HttpError("Error 403 : Forbidden") from exc
    serve_file(client, path)