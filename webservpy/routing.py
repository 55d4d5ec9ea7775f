"""Matching requests to server locations and filesystem paths."""

from __future__ import annotations

import os
from typing import Iterable

from .config import Location, Server
from .message import Request


def find_location(servers: Iterable[Server], request: Request) -> Location | None:
    """Pick the location with the longest path prefixing the request URI.

    The chosen location and its server are stored on ``request``.
    """
    for server in servers:
        for location in server.locations:
            if not request.uri.startswith(location.path):
                continue
            if request.location is None or len(location.path) > len(request.location.path):
                request.location = location
                request.server = server
    return request.location


def resolve_path(server: Server, request: Request, location: Location) -> str:
    """Map the request URI onto a relative filesystem path and store it."""
    if location.root:
        path = location.root + request.uri[len(location.path):]
    else:
        path = server.root + request.uri
    if not path.startswith("."):
        path = "." + path
    if os.path.isdir(path):
        if not path.endswith("/"):
            path += "/"
        path += location.index
    request.uri_path = path
    return path