# webservpy

The request-handling core of a small HTTP/1.1 server. It reads an nginx-like
configuration, matches requests to locations and builds the responses for:

- static files, with MIME types taken from the file extension
- directory listings (autoindex) where a location turns them on
- `301`/`302` redirects configured with `return`
- `POST` bodies sent as `application/x-www-form-urlencoded`,
  `multipart/form-data`, `application/json` or `plain/text`
- `DELETE` of files
- CGI scripts, chosen by file extension and run as child processes

## Installing

```
pip install .
```

## Configuration

```
server {
    listen 8080
    host 127.0.0.1
    server_name example.com
    root /www
    index index.html
    client_max_body_size 10
    error_page 404 /error_404.html
    location / {
        allow_methods GET POST DELETE
        autoindex on
    }
    location /cgi-bin {
        allow_methods GET POST
        cgi .py /usr/bin/python3
    }
    location /old {
        allow_methods GET
        return 301 /
    }
}
```

The `server {` line and the `}` that closes a server block must stand alone,
without indentation. Server directives: `listen`, `host` (default
`127.0.0.1`), `server_name`, `root`, `index`, `error_page`, and
`client_max_body_size` in megabytes (`0` turns into a 100-byte limit).
Location directives: `index`, `autoindex`, `upload_dir`, `root`,
`cgi <extension> <interpreter>`, `allow_methods`, `return <301|302> <target>`
and `client_max_body_size`. A location's body size and index fall back to the
server's. Any other directive raises `webservpy.config.ConfigError`.

`webservpy.config.parse_config(text)` parses configuration text and
`load_config(path)` reads a file; both return a list of `Server` objects,
each holding its `Location` objects.

## Handling a request

A `webservpy.message.Client` carries the servers it may be routed to, the
`Request` being processed and the `Response` being built.
`webservpy.handlers.execute_request(client)` routes the request to the
location with the longest matching path prefix, checks the allowed methods and
advances the work by one step. Large files are read 100000 bytes per call and
CGI children are started on the first call and pumped on later ones, so call
it until `client.response_ready` is true.

```python
from webservpy.config import load_config
from webservpy.handlers import execute_request
from webservpy.message import Client, Request

servers = load_config("server.conf")
request = Request(
    method="GET",
    uri="/index.html",
    version="HTTP/1.1",
    headers={"Host": "localhost"},
)
client = Client(servers=servers, request=request)
while not client.response_ready:
    execute_request(client)

response = client.response
if not response.use_payload:
    response.encode_body()
data = response.to_bytes()
```

Paths are resolved relative to the working directory. A 404 response uses the
page at `webservpy.pages.ERROR_404_PAGE` (`./www/webservSite/error_404.html`)
when it exists and an empty body otherwise. CGI output is collected in a file
under `.tmp/` that is removed when the request is reset.

Other pieces can be used on their own: `webservpy.multipart.divide_multipart`,
`webservpy.post.parse_urlencoded` and `parse_json`,
`webservpy.autoindex.render_autoindex`, `webservpy.pages.url_decode`,
`mime_type` and `http_date`, and `webservpy.connection.size_to_send` and
`clean_done_clients` for sending responses in chunks and dropping finished
clients.

## What it does not do

The package has no listening server loop and no command to start one. It does
not read requests from sockets or turn raw request bytes into a `Request`: the
caller fills in the method, URI, version, headers and body, and sends the
bytes from `Response.to_bytes()` itself.

## Tests

```
pip install .[test]
pytest
```