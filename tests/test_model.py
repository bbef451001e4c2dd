import pytest

from statica.http.model import HEADER_NAMES, HTTPRequest, HTTPResponse, headername
from statica.http.status import HTTP_STATUS


def test_headername():
	assert headername("if-none-match") == "If-None-Match"
	assert headername("ETAG") == "Etag"
	assert headername("content-type") == headername("Content-Type")


def test_unknown_header_names_are_not_kept():
	size = len(HEADER_NAMES)
	for i in range(100):
		assert headername(f"x-junk-{i}") == f"X-Junk-{i}"
	assert len(HEADER_NAMES) == size


def test_request_headers_are_case_insensitive():
	req = HTTPRequest.Create("/a?b=c", {"if-modified-since": "x"})
	assert req.header("If-Modified-Since") == "x"
	assert req.headers == {"If-Modified-Since": "x"}
	assert (req.path, req.query, req.url) == ("/a", "b=c", "/a?b=c")


def test_response_head():
	res = HTTPResponse.Create("héllo", contentType="text/plain", headers={"etag": "t"})
	head = res.head()
	assert head.startswith(b"HTTP/1.1 200 OK\r\n")
	assert b"Etag: t\r\n" in head
	assert b"Content-Type: text/plain\r\n" in head
	assert b"Content-Length: 6\r\n" in head
	assert head.endswith(b"\r\n\r\n")
	assert res.payload == "héllo".encode("utf8")


def test_not_modified_has_no_length():
	res = HTTPRequest.Create("/a.css").notModified("text/css")
	assert res.status == 304
	assert res.body is None
	assert res.getHeader("content-type") == "text/css"
	head = res.head()
	assert head.startswith(b"HTTP/1.1 304 Not Modified\r\n")
	assert b"Content-Length" not in head


def test_bodiless_response_has_length():
	res = HTTPRequest.Create("/").respond(status=200)
	assert res.head().startswith(b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n")


def test_keep_alive():
	assert HTTPRequest.Create("/").keepAlive
	assert not HTTPRequest.Create("/", {"connection": "Close"}).keepAlive
	assert not HTTPRequest.Create("/", protocol="HTTP/1.0").keepAlive


def test_redirect():
	res = HTTPRequest.Create("/docs").redirect("/docs/", permanent=True)
	assert res.status == 301
	assert res.message == "Moved Permanently"
	assert res.getHeader("Location") == "/docs/"
	assert res.payload == b"Redirecting to <a href='/docs/'>/docs/</a>"


def test_unsupported_content():
	with pytest.raises(ValueError):
		HTTPResponse.Create(content=object())


def test_status_table():
	assert HTTP_STATUS[404] == "Not Found"
	assert HTTP_STATUS[500] == "Internal Server Error"


# EOF
