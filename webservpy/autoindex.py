"""Directory listings for locations with autoindex enabled."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Iterable

from .config import Location, Server
from .message import HttpError, Response

_HEAD = (
    "<!DOCTYPE html>\n<html>\n<head>\n\t<title>Index of {loc}</title>\n\t<style>\n"
    "\t\tbody { font-family: Arial, sans-serif; margin: 20px; }\n"
    "\t\th1 { border-bottom: 1px solid #ccc; padding-bottom: 10px; }\n\t\t"
    "table { border-collapse: collapse; width: 100%; }\n"
    "\t\tth, td { text-align: left; padding: 8px; }\n"
    "\t\ttr:nth-child(even) { background-color: #f2f2f2; }\n"
    "\t\ta { text-decoration: none; }\n\t\t"
    ".dir { font-weight: bold; }\n\t</style>\n</head>\n<body>\n"
    "\t<h1>Index of {loc}</h1>\n\t<table>\n\t\t<tr>\n\t\t\t<th>Name</th>\n"
    "\t\t\t<th>Size</th>\n\t\t\t<th>Last Modified</th>\n\t\t</tr>"
)


@dataclass
class DirEntry:
    """One row of a directory listing."""

    name: str
    size: str
    modified: str


def _row(entry: DirEntry, location_path: str) -> str:
    if entry.name == "..":
        link = f'<a href="{entry.name}">Parent Directory</a>'
    else:
        link = f'<a href="{location_path}/{entry.name}">{entry.name}</a>'
    return (
        f"\n\t\t<tr>\n\t\t\t<td>{link}</td>"
        f"\n\t\t\t<td>{entry.size} KB</td>"
        f"\n\t\t\t<td>{entry.modified}</td>"
        "\n\t\t</tr>"
    )


def render_autoindex(entries: Iterable[DirEntry], location_path: str) -> Response:
    """An HTML listing response for ``entries`` under ``location_path``."""
    head = _HEAD.replace("{loc}", location_path)
    rows = "".join(_row(entry, location_path) for entry in entries)
    body = head + rows + "\n\t</table>" + "\n</body>\n</html>"
    response = Response()
    response.set_status(200, "OK")
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Content-Type"] = "text/html"
    response.body = body
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))
    return response


def _entry(directory: str, name: str) -> DirEntry | None:
    full = os.path.join(directory, name)
    try:
        info = os.stat(full)
    except OSError:
        try:
            info = os.lstat(full)
        except OSError:
            return None
    return DirEntry(
        name=name,
        size=f"{info.st_size / 1000.0:g}",
        modified=time.ctime(info.st_mtime),
    )


def autoindex_response(server: Server, location: Location, path: str) -> Response:
    """List the directory at ``path`` for ``location``."""
    try:
        names = sorted(os.listdir(path))
    except OSError as exc:
        raise HttpError("error 403 : Access denied") from exc
    if path != "." + server.root + "/":
        names.insert(0, "..")
    entries = [entry for entry in (_entry(path, name) for name in names) if entry]
    return render_autoindex(entries, location.path)