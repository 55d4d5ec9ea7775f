"""Configuration, routing and response building for a small HTTP/1.1 server."""

__version__ = "1.0.0"
__all__ = [
    "autoindex",
    "cgi",
    "config",
    "connection",
    "delete",
    "handlers",
    "message",
    "multipart",
    "pages",
    "post",
    "routing",
    "static",
]