import pytest

from webservpy.pages import (
    format_error_page,
    http_date,
    mime_type,
    read_error_page,
    url_decode,
)


def test_format_error_page_contains_code_and_message():
    page = format_error_page("404", "Error : Not found")
    assert page.startswith("<!DOCTYPE html>\n<html>\n<head>\n\t<title>")
    assert "<title>404 Error : Not found</title>" in page
    assert "<h1>404 - Error : Not found</h1>" in page
    assert page.endswith("</h1>\n\t<p><a href=\"/\">Retour à l'accueil</a></p>\n</body>\n</html>")


def test_read_error_page_adds_trailing_newline(tmp_path):
    page = tmp_path / "err.html"
    page.write_text("a\nb", encoding="utf-8")
    assert read_error_page(page) == "a\nb\n"


def test_read_error_page_keeps_existing_newline(tmp_path):
    page = tmp_path / "err.html"
    page.write_text("line\n", encoding="utf-8")
    assert read_error_page(page) == "line\n"


def test_read_error_page_missing_file(tmp_path):
    assert read_error_page(tmp_path / "missing.html") == ""


def test_http_date_epoch():
    assert http_date(0) == "Thu, 01 Jan 1970 00:00:00 GMT"


def test_http_date_now_has_gmt_suffix():
    stamp = http_date()
    assert stamp.endswith(" GMT")
    assert stamp[3:5] == ", "


@pytest.mark.parametrize(
    "path, expected",
    [
        ("./www/index.html", "text/html"),
        ("page.htm", "text/html"),
        ("style.css", "text/css"),
        ("app.js", "application/javascript"),
        ("data.json", "application/json"),
        ("img.png", "image/png"),
        ("img.jpeg", "image/jpeg"),
        ("img.jpg", "image/jpeg"),
        ("anim.gif", "image/gif"),
        ("logo.svg", "image/svg+xml"),
        ("notes.txt", "text/plain"),
        ("doc.pdf", "application/pdf"),
        ("favicon.ico", "image/x-icon"),
        ("archive.zip", "application/octet-stream"),
        ("noextension", "application/octet-stream"),
    ],
)
def test_mime_type(path, expected):
    assert mime_type(path) == expected


def test_url_decode_examples():
    assert url_decode("Jean+Dupont") == "Jean Dupont"
    assert url_decode("Demande+d%27infos") == "Demande d'infos"
    assert url_decode("Bonjour%2C+je+veux+plus+d%27infos.") == "Bonjour, je veux plus d'infos."


def test_url_decode_escape_too_close_to_end_is_literal():
    assert url_decode("ab%4") == "ab%4"


def test_url_decode_utf8_sequence():
    assert url_decode("%C3%A9t%C3%A9") == "été"


def test_url_decode_plain_text_unchanged():
    assert url_decode("hello") == "hello"