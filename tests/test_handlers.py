import sys
import time

import pytest

from webservpy.config import Location, Server
from webservpy.handlers import (
    execute_request,
    get_error_response,
    handle_get,
    redirect_response,
)
from webservpy.message import Client, Request
from webservpy.pages import ERROR_404_PAGE, format_error_page, read_error_page

INDEX = b"<h1>welcome</h1>\n"


@pytest.fixture
def site(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    www = tmp_path / "www"
    www.mkdir()
    (www / "index.html").write_bytes(INDEX)
    (www / "docs").mkdir()
    (www / "docs" / "a.txt").write_text("a")
    return www


def _server(location):
    return Server(root="/www", server_name="localhost", locations=[location])


def _client(location, method="GET", uri="/index.html"):
    request = Request(
        method=method, uri=uri, version="HTTP/1.1", headers={"Host": "localhost"}
    )
    return Client(servers=[_server(location)], request=request)


@pytest.mark.parametrize(
    "message, code, status, text",
    [
        ("Error 405 : Method Not Allowed", 405, "Method not allowed", "Error : Method not allowed"),
        ("Error 403 : Forbidden", 403, "Forbidden", "Error : Forbidden"),
        (
            "Error 500 : Internal Server Error",
            500,
            "Internal Server Error",
            "Error : Unexpected system error occured",
        ),
    ],
)
def test_get_error_response(message, code, status, text):
    response = get_error_response(message)
    assert response.status_code == code
    assert response.status_message == status
    assert response.body == format_error_page(str(code), text)
    assert response.headers["Content-Length"] == str(len(response.body.encode("utf-8")))


def test_get_error_response_404(site):
    response = get_error_response("error 404 : Resource not found")
    assert response.status_code == 404
    assert response.body == read_error_page(ERROR_404_PAGE)


def test_redirect_301():
    location = Location(path="/old", redirect=("301", "/new"))
    request = Request(method="GET", uri="/old", version="HTTP/1.1")
    response = redirect_response(request, location)
    assert response.status_code == 301
    assert response.status_message == "Moved Permanently"
    assert response.headers["Location"] == "/new"
    assert response.headers["Content-Length"] == "0"
    assert response.headers["Connection"] == "keep-alive"


def test_redirect_302_closes_http10():
    location = Location(path="/old", redirect=("302", "/elsewhere"))
    request = Request(method="GET", uri="/old", version="HTTP/1.0")
    response = redirect_response(request, location)
    assert response.status_code == 302
    assert response.status_message == "Found"
    assert response.headers["Connection"] == "close"


def test_handle_get_serves_file(site):
    location = Location(path="/", methods=["GET"])
    client = _client(location)
    client.request.uri_path = "./www/index.html"
    handle_get(_server(location), client, location)
    assert client.response_ready
    assert bytes(client.response.payload) == INDEX
    assert client.response.headers["Content-Type"] == "text/html"


def test_handle_get_missing_file(site):
    location = Location(path="/", methods=["GET"])
    client = _client(location)
    client.request.uri_path = "./www/missing.html"
    handle_get(_server(location), client, location)
    assert client.response_ready
    assert client.response.status_code == 404


def test_handle_get_directory_forbidden(site):
    location = Location(path="/docs", methods=["GET"])
    client = _client(location, uri="/docs")
    client.request.uri_path = "./www/docs/"
    handle_get(_server(location), client, location)
    assert client.response.status_code == 403


def test_handle_get_directory_autoindex(site):
    location = Location(path="/docs", methods=["GET"], autoindex=True)
    client = _client(location, uri="/docs")
    client.request.uri_path = "./www/docs/"
    handle_get(_server(location), client, location)
    assert client.response_ready
    assert client.response.status_code == 200
    assert "Index of /docs" in client.response.body
    assert "a.txt" in client.response.body


def test_handle_get_redirect(site):
    location = Location(path="/", methods=["GET"], redirect=("301", "/new"))
    client = _client(location)
    handle_get(_server(location), client, location)
    assert client.response.status_code == 301
    assert client.response.headers["Location"] == "/new"


def test_execute_request_get(site):
    location = Location(path="/", methods=["GET"], index="index.html")
    client = _client(location)
    execute_request(client)
    assert client.request.uri_path == "./www/index.html"
    assert client.response_ready
    assert bytes(client.response.payload) == INDEX


def test_execute_request_method_not_allowed(site):
    location = Location(path="/", methods=["GET"])
    client = _client(location, method="POST")
    execute_request(client)
    assert client.response.status_code == 405
    assert client.response.headers["Allow"] == "GET "
    assert client.response.use_payload
    assert bytes(client.response.payload) == client.response.body.encode("utf-8")


def test_execute_request_delete(site):
    target = site / "gone.txt"
    target.write_text("bye")
    location = Location(path="/", methods=["DELETE"])
    client = _client(location, method="DELETE", uri="/gone.txt")
    execute_request(client)
    assert client.response_ready
    assert client.response.status_code == 200
    assert not target.exists()


def test_execute_request_without_location(site):
    location = Location(path="/api", methods=["GET"])
    client = _client(location, uri="/index.html")
    execute_request(client)
    assert client.response_ready
    assert client.response.status_code == 404


def test_execute_request_cgi(site):
    (site / "script.py").write_text("print('from script')\n")
    location = Location(path="/", methods=["GET"], cgi={".py": sys.executable})
    client = _client(location, uri="/script.py")
    try:
        execute_request(client)
        assert client.request.cgi is not None
        assert not client.response_ready
        end = time.monotonic() + 15
        while not client.response_ready and time.monotonic() < end:
            execute_request(client)
            time.sleep(0.01)
        assert client.response.status_code == 200
        assert client.response.body == "from script\n\n"
    finally:
        client.request.reset()


def test_execute_request_cgi_unknown_extension(site):
    location = Location(path="/", methods=["GET"], cgi={".php": "php-cgi"})
    client = _client(location)
    execute_request(client)
    assert client.response_ready
    assert client.response.status_code == 500