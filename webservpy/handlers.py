"""Dispatching processed requests to GET, POST, DELETE and CGI handling."""

from __future__ import annotations

import os
import re
import time

from .autoindex import autoindex_response
from .cgi import pump_cgi, start_cgi
from .config import Location, Server
from .delete import handle_delete
from .message import Client, HttpError, Request, Response, connection_header
from .pages import ERROR_404_PAGE, format_error_page, http_date, read_error_page
from .post import handle_post
from .routing import find_location, resolve_path
from .static import get_response

_GET_ERRORS = {
    "500": ("Internal Server Error", "Error : Unexpected system error occured"),
    "403": ("Forbidden", "Error : Forbidden"),
    "405": ("Method not allowed", "Error : Method not allowed"),
}
_REDIRECTS = {302: "Found", 301: "Moved Permanently"}


def get_error_response(message: str) -> Response:
    """The error response for a failed request, e.g. ``"Error 403 : Forbidden"``."""
    code = HttpError(message).code()
    response = Response()
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = "text/html; charset=UTF-8"
    response.headers["Connection"] = "keep-alive"
    body = ""
    if code in _GET_ERRORS:
        status, text = _GET_ERRORS[code]
        response.set_status(int(code), status)
        body = format_error_page(code, text)
    elif code == "404":
        response.set_status(404, "Resource not found")
        body = read_error_page(ERROR_404_PAGE)
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))
    response.body = body
    return response


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def redirect_response(request: Request, location: Location) -> Response:
    """The redirect response configured by ``location``'s return directive."""
    code, target = location.redirect
    status = _atoi(code)
    response = Response()
    if status in _REDIRECTS:
        response.set_status(status, _REDIRECTS[status])
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Location"] = target
    connection = connection_header(request)
    if connection is not None:
        response.headers["Connection"] = connection
    response.headers["Content-Length"] = "0"
    return response


def handle_get(server: Server, client: Client, location: Location) -> None:
    """Answer a GET: redirect, directory listing or (a chunk of) a file."""
    path = client.request.uri_path
    if location.redirect[0]:
        client.response = redirect_response(client.request, location)
        client.response_ready = True
        return
    try:
        if not os.path.exists(path):
            raise HttpError("error 404 : Resource not found")
        if os.path.isdir(path):
            if not location.has_index and location.autoindex:
                client.response = autoindex_response(server, location, path)
                client.response_ready = True
            elif location.has_index or location.path in ("/", "./"):
                get_response(client, path)
            else:
                raise HttpError("Error 403 : Forbidden")
        else:
            get_response(client, path)
    except HttpError as error:
        client.response = get_error_response(error.message)
        client.response_ready = True


def execute_request(client: Client) -> None:
    """Route the client's request and advance its processing by one step."""
    request = client.request
    find_location(client.servers, request)
    server, location = request.server, request.location
    if location is None:
        client.response = get_error_response("Error 404 : Resource not found")
        client.response_ready = True
        return
    resolve_path(server, request, location)
    if request.method not in location.methods:
        client.response = get_error_response("Error 405 : Method Not Allowed")
        client.response.headers["Allow"] = "".join(m + " " for m in location.methods)
        client.response_ready = True
        client.response.encode_body()
        client.response.use_payload = True
    elif location.has_cgi:
        try:
            if request.cgi is None:
                start_cgi(request, location)
                client.time_start = time.monotonic()
            else:
                pump_cgi(client)
        except HttpError as error:
            client.response = get_error_response(error.message)
            client.response_ready = True
    elif request.method == "GET":
        handle_get(server, client, location)
    elif request.method == "POST":
        handle_post(server, client, location)
    else:
        client.response = handle_delete(request)
        client.response_ready = True