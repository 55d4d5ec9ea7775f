"""Parsing of the server configuration file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

DEFAULT_ADDRESS = "127.0.0.1"
_BODY_SIZE_WHEN_ZERO = 100
_MEGABYTE = 1024 * 1024
_REDIRECT_CODES = ("301", "302")


class ConfigError(ValueError):
    """Raised when the configuration text is malformed."""


@dataclass
class Location:
    """A location block inside a server block."""

    path: str = ""
    index: str = ""
    autoindex: bool = False
    upload_dir: str = ""
    has_index: bool = False
    root: str = ""
    methods: list[str] = field(default_factory=list)
    redirect: tuple[str, str] = ("", "")
    client_max_body_size: int = 0
    cgi: dict[str, str] = field(default_factory=dict)

    @property
    def has_cgi(self) -> bool:
        """True when at least one CGI handler is declared."""
        return bool(self.cgi)


@dataclass
class Server:
    """A server block: one listening address with its locations."""

    port: str = ""
    server_name: str = ""
    address: str = ""
    index: str = ""
    root: str = ""
    error_pages: dict[str, str] = field(default_factory=dict)
    client_max_body_size: int = 0
    locations: list[Location] = field(default_factory=list)
    socket: Any = field(default=None, repr=False, compare=False)


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


class _Words:
    """Whitespace tokenizer whose last word survives a failed read."""

    def __init__(self) -> None:
        self.word = ""
        self._tokens: Iterator[str] = iter(())

    def load(self, line: str) -> None:
        self._tokens = iter(line.split())

    def take(self) -> str:
        self.word = next(self._tokens, self.word)
        return self.word

    def take_fresh(self) -> str:
        return next(self._tokens, "")

    def rest(self) -> list[str]:
        remaining = list(self._tokens)
        if remaining:
            self.word = remaining[-1]
        return remaining


def _parse_location(lines: Iterator[str], location: Location) -> None:
    words = _Words()
    for line in lines:
        if not line:
            continue
        words.load(line)
        key = words.take()
        if key == "}":
            return
        if key == "index":
            location.has_index = True
            location.index = words.take()
        elif key == "autoindex":
            if words.take() == "on":
                location.autoindex = True
        elif key == "upload_dir":
            location.upload_dir = words.take()
        elif key == "root":
            location.root = words.take()
        elif key == "cgi":
            extension = words.take()
            location.cgi[extension] = words.take_fresh()
        elif key == "allow_methods":
            location.methods.extend(words.rest())
        elif key == "return":
            code = words.take()
            if code not in _REDIRECT_CODES:
                raise ConfigError(
                    f"Conf file error: no error code returned at line: '{line}'"
                )
            location.redirect = (code, words.take_fresh())
        elif key == "client_max_body_size":
            location.client_max_body_size = _atoi(words.take())
        else:
            raise ConfigError(
                f"Conf file error: unknown location parameter: '{line}'"
            )
    raise ConfigError("Conf file error: unknown location parameter: ''")


def _apply_defaults(servers: list[Server]) -> None:
    for server in servers:
        for location in server.locations:
            if not location.client_max_body_size:
                location.client_max_body_size = server.client_max_body_size
            if not location.index and not location.autoindex:
                location.index = server.index
        if not server.address:
            server.address = DEFAULT_ADDRESS


def parse_config(text: str) -> list[Server]:
    """Parse configuration text into a list of servers."""
    servers: list[Server] = []
    lines = iter(text.split("\n"))
    words = _Words()
    in_server = False
    for line in lines:
        if not line:
            continue
        if not in_server:
            if line != "server {":
                raise ConfigError(
                    f"Conf file error: wrong server declaration at line: '{line}'"
                )
            in_server = True
            servers.append(Server())
            continue
        if line == "}":
            in_server = False
            continue
        server = servers[-1]
        words.load(line)
        key = words.take()
        if key == "location":
            location = Location(path=words.take())
            if words.take() != "{":
                raise ConfigError(
                    "Conf file error: location declaration syntax error at line: "
                    f"'{line}'"
                )
            _parse_location(lines, location)
            server.locations.append(location)
        elif key == "listen":
            server.port = words.take()
        elif key == "root":
            server.root = words.take()
        elif key == "server_name":
            server.server_name = words.take()
        elif key == "host":
            server.address = words.take()
        elif key == "index":
            server.index = words.take()
        elif key == "error_page":
            code = words.take()
            server.error_pages[code] = words.take_fresh()
        elif key == "client_max_body_size":
            size = _atoi(words.take())
            server.client_max_body_size = size * _MEGABYTE if size else _BODY_SIZE_WHEN_ZERO
        else:
            raise ConfigError(f"Conf file error: unknown server parameter: '{line}'")
    if in_server:
        raise ConfigError("Conf file error: unclosed server declaration")
    _apply_defaults(servers)
    return servers


def load_config(path: str | Path) -> list[Server]:
    """Read and parse the configuration file at ``path``."""
    return parse_config(Path(path).read_text(encoding="utf-8"))