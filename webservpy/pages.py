"""Shared page helpers: error pages, dates, MIME types and URL decoding."""

from __future__ import annotations

import sys
import time
from pathlib import Path

ERROR_404_PAGE = "./www/webservSite/error_404.html"

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "txt": "text/plain",
    "pdf": "application/pdf",
    "ico": "image/x-icon",
}
_DEFAULT_MIME = "application/octet-stream"
_HEX_DIGITS = "0123456789abcdefABCDEF"


def format_error_page(code: str, message: str) -> str:
    """A small HTML page describing an error."""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n\t<title>"
        f"{code} {message}"
        "</title>\n</head>\n<body>\n\t<h1>"
        f"{code} - {message}"
        "</h1>\n\t<p><a href=\"/\">Retour à l'accueil</a></p>\n</body>\n</html>"
    )


def read_error_page(path: str | Path) -> str:
    """The content of a custom error page, each line ending in a newline.

    Returns an empty string when the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            text = handle.read()
    except OSError:
        print(f"ERREUR: Fichier non trouvé: {path}", file=sys.stderr)
        return ""
    if not text or text.endswith("\n"):
        return text
    return text + "\n"


def http_date(now: float | None = None) -> str:
    """An RFC 1123 date in GMT, for ``now`` seconds since the epoch."""
    moment = time.gmtime(time.time() if now is None else now)
    return (
        f"{_WEEKDAYS[moment.tm_wday]}, {moment.tm_mday:02d} "
        f"{_MONTHS[moment.tm_mon - 1]} {moment.tm_year} "
        f"{moment.tm_hour:02d}:{moment.tm_min:02d}:{moment.tm_sec:02d} GMT"
    )


def mime_type(path: str) -> str:
    """The MIME type for the extension after the last dot of ``path``."""
    dot = path.rfind(".")
    if dot == -1:
        return _DEFAULT_MIME
    return _MIME_TYPES.get(path[dot + 1:], _DEFAULT_MIME)


def url_decode(text: str) -> str:
    """Decode ``+`` as space and ``%XX`` escapes as bytes (UTF-8)."""
    decoded = bytearray()
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char == "+":
            decoded += b" "
        elif char == "%" and i + 2 < length:
            digits = text[i + 1:i + 3]
            hex_part = ""
            for digit in digits:
                if digit not in _HEX_DIGITS:
                    break
                hex_part += digit
            if hex_part:
                decoded.append(int(hex_part, 16))
                i += 2
            else:
                decoded += char.encode("utf-8")
        else:
            decoded += char.encode("utf-8")
        i += 1
    return decoded.decode("utf-8", "replace")