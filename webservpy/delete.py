"""Handling of DELETE requests."""

from __future__ import annotations

import os

from .message import HttpError, Request, Response, connection_header
from .pages import ERROR_404_PAGE, format_error_page, http_date, read_error_page, url_decode


def delete_file(request: Request) -> None:
    """Remove the file the request resolved to."""
    path = url_decode(request.uri_path)
    if not os.path.exists(path):
        raise HttpError("Error 404 : Resource not found")
    if not os.access(path, os.W_OK):
        raise HttpError("Error 403 : No permission to delete this resource")
    try:
        if os.path.isdir(path):
            os.rmdir(path)
        else:
            os.remove(path)
    except OSError as exc:
        raise HttpError("Error 403 : No permission to delete this resource") from exc


def delete_body(uri: str) -> str:
    """The confirmation page naming the deleted file (the URI past its ninth character)."""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n\t<title>Supression"
        " réussie</title>\n</head>\n<body>\n\t<h1>Fichier supprimé avec succes"
        "</h1>\n\t<p>Merci pour votre supression du fichier "
        + url_decode(uri[9:])
        + "</p>\n\t<p><a href=\"/\">Retour à l'accueil</a></p>\n</body>\n</html>"
    )


def delete_error_response(message: str) -> Response:
    """The error response for a failed DELETE."""
    code = HttpError(message).code()
    response = Response()
    response.headers["Server"] = "Webserv/1.0"
    response.headers["Date"] = http_date()
    response.headers["Content-Type"] = "text/html; charset=UTF-8"
    response.headers["Connection"] = "keep-alive"
    body = ""
    if code == "500":
        response.set_status(500, "Internal Server Error")
        body = format_error_page(code, "Error : Unexpected system error occured")
    elif code == "403":
        response.set_status(403, "No permission")
        body = format_error_page(
            code, "Error : You do not have permission to delete this resource"
        )
    elif code == "404":
        response.set_status(404, "Resource not found")
        body = read_error_page(ERROR_404_PAGE)
    response.headers["Content-Length"] = str(len(body.encode("utf-8")))
    response.body = body
    return response


def handle_delete(request: Request) -> Response:
    """Delete the requested file and build the response."""
    body = delete_body(request.uri)
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
    try:
        delete_file(request)
    except HttpError as error:
        return delete_error_response(error.message)
    return response