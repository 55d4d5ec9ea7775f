import pytest

from webservpy.config import ConfigError, Location, Server, load_config, parse_config

SAMPLE = """server {
    listen 8080
    server_name example
    host 10.0.0.5
    root /www
    index index.html
    error_page 404 /error_404.html
    client_max_body_size 2
    location / {
        allow_methods GET POST
        autoindex on
    }
    location /cgi {
        cgi .py /usr/bin/python3
        client_max_body_size 50
    }
    location /old {
        return 301 /new
        index home.html
    }
}
"""


def test_server_fields():
    [server] = parse_config(SAMPLE)
    assert server.port == "8080"
    assert server.server_name == "example"
    assert server.address == "10.0.0.5"
    assert server.root == "/www"
    assert server.index == "index.html"
    assert server.error_pages == {"404": "/error_404.html"}
    assert server.client_max_body_size == 2 * 1024 * 1024


def test_locations_parsed_in_order():
    [server] = parse_config(SAMPLE)
    assert [loc.path for loc in server.locations] == ["/", "/cgi", "/old"]
    root, cgi, old = server.locations
    assert root.methods == ["GET", "POST"]
    assert root.autoindex is True
    assert cgi.cgi == {".py": "/usr/bin/python3"}
    assert cgi.has_cgi is True
    assert root.has_cgi is False
    assert old.redirect == ("301", "/new")
    assert old.has_index is True
    assert old.index == "home.html"


def test_location_defaults_inherited():
    [server] = parse_config(SAMPLE)
    root, cgi, old = server.locations
    assert root.client_max_body_size == server.client_max_body_size
    assert cgi.client_max_body_size == 50
    assert root.index == ""
    assert cgi.index == server.index


def test_default_address_and_zero_body_size():
    [server] = parse_config("server {\nlisten 80\nclient_max_body_size 0\n}\n")
    assert server.address == "127.0.0.1"
    assert server.client_max_body_size == 100


def test_several_servers():
    text = "server {\nlisten 1\n}\n\nserver {\nlisten 2\n}\n"
    servers = parse_config(text)
    assert [s.port for s in servers] == ["1", "2"]


def test_empty_text_gives_no_servers():
    assert parse_config("") == []


def test_dataclass_defaults():
    assert Location().redirect == ("", "")
    assert Server().locations == []


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("hello\n", "wrong server declaration"),
        ("server {\nlisten 80\n", "unclosed server declaration"),
        ("server {\nbogus 1\n}\n", "unknown server parameter"),
        ("server {\nlocation / \n}\n", "location declaration syntax error"),
        ("server {\nlocation / {\nweird\n}\n}\n", "unknown location parameter"),
        ("server {\nlocation / {\nreturn 404 /x\n}\n}\n", "no error code returned"),
        ("server {\nlocation / {\n", "unknown location parameter"),
    ],
)
def test_errors(text, fragment):
    with pytest.raises(ConfigError, match=fragment):
        parse_config(text)


def test_load_config(tmp_path):
    path = tmp_path / "site.conf"
    path.write_text(SAMPLE, encoding="utf-8")
    assert load_config(path) == parse_config(SAMPLE)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_config(tmp_path / "absent.conf")