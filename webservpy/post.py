"""Handling of POST requests: form submissions, JSON, plain text and uploads."""

from __future__ import annotations

from typing import Mapping

from .config import Location, Server
from .message import Client, FormData, HttpError, Response, connection_header
from .multipart import divide_multipart
from .pages import ERROR_404_PAGE, format_error_page, http_date, read_error_page, url_decode

_JSON_VALUE_SKIP = " \t\n\""
_JSON_VALUE_END = ",}"

_POST_ERRORS = {
    "500": ("Internal Server Error", "Error : Unexpected system error occured"),
    "403": ("No permission", "Error : You do not have permission to post this resource"),
    "415": ("Content-Type unknown", "Error : Content-Type unknown"),
}


def _as_text(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", "replace")


def parse_urlencoded(body: bytes | str) -> dict[str, str]:
    """Decode an ``application/x-www-form-urlencoded`` body."""
    result: dict[str, str] = {}
    for pair in _as_text(body).split("&"):
        key, sep, value = pair.partition("=")
        if sep:
            result[url_decode(key)] = url_decode(value)
    return result


def _find_first_not_of(text: str, chars: str, start: int) -> int:
    for pos in range(max(start, 0), len(text)):
        if text[pos] not in chars:
            return pos
    return -1


def _find_first_of(text: str, chars: str, start: int) -> int:
    for pos in range(max(start, 0), len(text)):
        if text[pos] in chars:
            return pos
    return -1


def parse_json(body: bytes | str) -> dict[str, str]:
    """Extract flat ``"key": value`` pairs from a JSON-like body.

    Each value runs from its first significant character up to, but not
    including, the character before the next ``,`` or ``}``.
    """
    text = _as_text(body)
    result: dict[str, str] = {}
    i = text.find('"')
    while i != -1:
        key_start = i + 1
        key_end = text.find('"', key_start)
        if key_end == -1:
            break
        key = text[key_start:key_end]
        colon = text.find(":", key_end)
        if colon == -1:
            break
        value_start = _find_first_not_of(text, _JSON_VALUE_SKIP, colon + 1)
        if value_start == -1:
            break
        value_end = _find_first_of(text, _JSON_VALUE_END, value_start)
        count = (value_end if value_end != -1 else len(text)) - value_start - 1
        if value_end == -1 or count < 0:
            result[key] = text[value_start:]
        else:
            result[key] = text[value_start:value_start + count]
        if value_end == -1:
            break
        i = text.find('"', value_end)
    return result


def target_dir(server: Server, location: Location) -> str:
    """The directory that POST data for ``location`` is written under."""
    root = location.root if location.root else server.root
    return "." + root + location.path


def _append(path: str, data: bytes) -> None:
    try:
        handle = open(path, "ab")
    except OSError as exc:
        raise HttpError("Error 403 : No permission to open the file") from exc
    with handle:
        try:
            handle.write(data)
        except OSError as exc:
            raise HttpError("Error 500 : Cannot write in file") from exc


def post_comment(server: Server, fields: Mapping[str, str], location: Location) -> None:
    """Append the comment to a file named after the submitter."""
    path = target_dir(server, location) + "/" + fields.get("name", "") + ".txt"
    _append(path, (fields.get("comment", "") + "\n").encode("utf-8"))


def post_comment_json(server: Server, fields: Mapping[str, str], location: Location) -> None:
    """Append the JSON fields, in key order, to the JSON comments file."""
    path = target_dir(server, location) + "/Uploads/CommentsJson.txt"
    lines = "".join(f"{key} : {value}\n" for key, value in sorted(fields.items()))
    _append(path, lines.encode("utf-8"))


def post_upload(server: Server, form: FormData, location: Location) -> None:
    """Write an uploaded form part to its file, replacing any previous one."""
    filename = form.filename if form.filename else form.name
    path = target_dir(server, location) + "/" + filename
    try:
        handle = open(path, "wb")
    except OSError as exc:
        raise HttpError("Error 403 : No permission to open the file") from exc
    with handle:
        try:
            handle.write(bytes(form.body))
        except OSError as exc:
            raise HttpError("Error 500 : Cannot write in file") from exc


def post_text_plain(server: Server, body: bytes | str, location: Location) -> None:
    """Append a plain text body to the plain text comments file."""
    path = target_dir(server, location) + "/Uploads/CommentsTextPlain.txt"
    data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
    _append(path, data + b"\n")


def submission_body(fields: Mapping[str, str]) -> str:
    """The confirmation page for a form submission."""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n\t<title>Soumission"
        " réussie</title>\n</head>\n<body>\n\t<h1>Formulaire reçu avec succès"
        "</h1>\n\t<p>Merci pour votre soumission, "
        + fields.get("name", "")
        + "!</p>\n\t<p>Votre commentaire: "
        + fields.get("comment", "")
        + "</p>\n\t<p><a href=\"/\">Retour à l'accueil</a></p>\n</body>\n</html>"
    )


def upload_body(name: str) -> str:
    """The confirmation page for an upload."""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n\t<title>Soumission"
        " réussie</title>\n</head>\n<body>\n\t<h1>Formulaire upload avec succès"
        "</h1>\n\t<p>Merci pour votre soumission!"
        "!</p>\n\t<p>Votre soumission: "
        + name
        + "</p>\n\t<p><a href=\"/\">Retour à l'accueil</a></p>\n</body>\n</html>"
    )


def post_error_response(message: str) -> Response:
    """The error response for a failed POST, e.g. ``"Error 403 : ..."``."""
    code = HttpError(message).code()
    response = Response()
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = "text/html; charset=UTF-8"
    response.headers["Connection"] = "keep-alive"
    body = ""
    if code in _POST_ERRORS:
        status, text = _POST_ERRORS[code]
        response.set_status(int(code), status)
        body = format_error_page(code, text)
    elif code == "404":
        response.set_status(404, "Resource not found")
        body = read_error_page(ERROR_404_PAGE)
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))
    response.body = body
    return response


def _created(client: Client, body: str) -> None:
    response = client.response
    response.body = body
    response.set_status(201, "Created")
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = "text/html; charset=UTF-8"
    connection = connection_header(client.request)
    if connection is not None:
        response.headers["Connection"] = connection
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))


def _fail(client: Client, error: HttpError) -> None:
    client.response = post_error_response(error.message)
    client.response_ready = True


def handle_post(server: Server, client: Client, location: Location) -> None:
    """Process a POST request according to its Content-Type."""
    request = client.request
    content_type = request.headers.get("Content-Type", "")
    if content_type == "application/x-www-form-urlencoded":
        fields = parse_urlencoded(request.raw_body)
        try:
            post_comment(server, fields, location)
        except HttpError as error:
            _fail(client, error)
            return
        _created(client, submission_body(fields))
        client.response_ready = True
    elif "multipart/form-data" in content_type:
        if divide_multipart(content_type, request.raw_body, client.form):
            client.response_ready = True
        if not client.response_ready:
            return
        try:
            post_upload(server, client.form, location)
        except HttpError as error:
            _fail(client, error)
            return
        form = client.form
        _created(client, upload_body(form.filename if form.filename else form.name))
    elif content_type == "plain/text":
        try:
            post_text_plain(server, request.body, location)
        except HttpError as error:
            _fail(client, error)
            return
        client.response_ready = True
        _created(client, upload_body(_as_text(request.body)))
    elif content_type == "application/json":
        fields = parse_json(request.body)
        try:
            post_comment_json(server, fields, location)
        except HttpError as error:
            _fail(client, error)
            return
        _created(client, upload_body("un truc au format Json"))
        client.response_ready = True
    else:
        client.response = post_error_response("Error 415 : Content-Type Unknown")
        client.response_ready = True