"""Incremental extraction of one part of a multipart/form-data body."""

from __future__ import annotations

import enum

from .message import FormData

CHUNK_WRITE = 500


class Pattern(enum.IntEnum):
    NONE = -1
    NAME = 0
    FILENAME = 1
    CONTENT_TYPE = 2
    BODY = 3


_PATTERNS = (b' name="', b'filename="', b"Content-Type: ", b"\n\r\n")


def find_pattern(body: bytes, pos: int) -> Pattern:
    """Which marker, if any, starts at ``pos`` in ``body``."""
    if pos >= len(body):
        return Pattern.NONE
    for index, pattern in enumerate(_PATTERNS):
        if body.startswith(pattern, pos):
            return Pattern(index)
    return Pattern.NONE


def _take_until(body: bytes, pos: int, stop: bytes) -> tuple[str, int]:
    end = body.find(stop, pos)
    if end == -1:
        end = len(body)
    return body[pos:end].decode("utf-8", "replace"), end


def divide_multipart(content_type: str, body: bytes, form: FormData) -> bool:
    """Advance through ``body`` by at most one chunk, filling ``form``.

    Returns True once the part is complete and a response can be produced.
    """
    boundary = b"--" + content_type[content_type.rfind("=") + 1:].encode("utf-8")
    size = len(body)
    start = len(boundary) if form.bytes_read == 0 else form.bytes_read
    first_chunk = start == len(boundary)

    def at_boundary(pos: int) -> bool:
        return body.startswith(boundary, pos)

    def copy_body(pos: int) -> int:
        while pos < size and not at_boundary(pos) and pos - start < CHUNK_WRITE:
            form.body.append(body[pos])
            pos += 1
        return pos

    i = start
    while i < size and not at_boundary(i) and i - start < CHUNK_WRITE:
        pattern = find_pattern(body, i)
        if first_chunk and pattern is Pattern.NAME:
            text, i = _take_until(body, i + len(_PATTERNS[Pattern.NAME]), b'"')
            form.name += text
        elif first_chunk and pattern is Pattern.FILENAME:
            text, i = _take_until(body, i + len(_PATTERNS[Pattern.FILENAME]), b'"')
            form.filename += text
        elif first_chunk and pattern is Pattern.CONTENT_TYPE:
            text, i = _take_until(body, i + len(_PATTERNS[Pattern.CONTENT_TYPE]), b"\r")
            form.content_type += text
        elif first_chunk and pattern is Pattern.BODY:
            i = copy_body(i + len(_PATTERNS[Pattern.BODY]))
        elif not first_chunk:
            i = copy_body(i)
        if at_boundary(i):
            break
        i += 1

    if first_chunk:
        form.bytes_read += i - 1
    else:
        form.bytes_read += i - start - 1
    return i - start <= CHUNK_WRITE