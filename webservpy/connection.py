"""Socket helpers and bookkeeping for client connections."""

from __future__ import annotations

import re
import socket
from typing import Any, MutableMapping, Sequence

from .config import Server
from .message import Client, ClientState, Response

CHUNK_SEND = 100000


def set_non_blocking(sock: socket.socket) -> None:
    """Make ``sock`` non-blocking and allow its address to be reused."""
    sock.setblocking(False)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


def _fileno(sock: Any) -> int:
    if sock is None:
        return -1
    if isinstance(sock, int):
        return sock
    try:
        return sock.fileno()
    except OSError:
        return -1


def listener_index(servers: Sequence[Server], sock: Any) -> int:
    """Index of the server listening on ``sock`` (a socket or a descriptor), or -1."""
    fd = _fileno(sock)
    for index, server in enumerate(servers):
        if server.socket is None:
            continue
        if server.socket is sock or (fd != -1 and _fileno(server.socket) == fd):
            return index
    return -1


def _port_number(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def server_index_for_port(servers: Sequence[Server], port: int) -> int:
    """Index of the first server configured for ``port``, or -1."""
    for index, server in enumerate(servers):
        if _port_number(server.port) == port:
            return index
    return -1


def size_to_send(response: Response) -> int:
    """How many bytes of the serialized response to send next."""
    total = len(response.to_bytes())
    if response.bytes_sent + CHUNK_SEND < total:
        return CHUNK_SEND
    return total - response.bytes_sent


def clean_done_clients(clients: MutableMapping[int, Client]) -> list[int]:
    """Reset, close and remove every finished client; return their keys."""
    removed = [key for key, client in clients.items() if client.state is ClientState.DONE]
    for key in removed:
        client = clients.pop(key)
        client.buffer.clear()
        client.response_ready = False
        client.request.reset()
        client.response.bytes_read = 0
        client.response.bytes_sent = 0
        client.response.use_payload = False
        print(f"[Server] Socket {key} closed.")
        if client.sock is not None:
            client.sock.close()
    return removed