import asyncio
import socket
import threading
from http.client import HTTPConnection
from pathlib import Path
from typing import Iterator

import pytest

from statica import (
	FileService,
	HTTPRequest,
	HTTPRequestError,
	ServerConfig,
	Service,
	mount,
)
from statica.server import AIOSocketServer, ServerOptions


class Forbidden(Service):
	PREFIX = "/forbidden"

	def process(self, request: HTTPRequest):
		raise HTTPRequestError("Forbidden zone", 403)


@pytest.fixture
def port(root: Path) -> Iterator[int]:
	"""Runs the server in a background thread, yielding the port it listens
	on."""
	ready = threading.Event()
	stop = threading.Event()
	ports: list[int] = []

	def onListen(port: int) -> None:
		ports.append(port)
		ready.set()

	options = ServerOptions(
		host="127.0.0.1",
		port=0,
		polling=0.05,
		keepalive=5.0,
		stopSignals=False,
		condition=lambda: not stop.is_set(),
		onListen=onListen,
	)
	app = mount(FileService(ServerConfig(root=root, logRequests=False)), Forbidden())
	thread = threading.Thread(
		target=asyncio.run, args=(AIOSocketServer.Serve(app, options),), daemon=True
	)
	thread.start()
	assert ready.wait(5.0), "Server did not start"
	yield ports[0]
	stop.set()
	thread.join(5.0)


def test_get_and_revalidate(port: int):
	conn = HTTPConnection("127.0.0.1", port, timeout=5.0)
	try:
		conn.request("GET", "/style.css")
		res = conn.getresponse()
		assert res.status == 200
		assert res.getheader("Content-Type") == "text/css"
		assert res.getheader("Cache-Control") == "max-age=60"
		assert res.read() == b"body { color: red; }"
		tag = res.getheader("Etag")
		# Same connection, thanks to keep-alive
		conn.request("GET", "/style.css", headers={"If-None-Match": tag})
		res = conn.getresponse()
		assert res.status == 304
		assert res.read() == b""
		assert res.getheader("Content-Type") == "text/css"
	finally:
		conn.close()


def test_redirect_listing_and_not_found(port: int):
	conn = HTTPConnection("127.0.0.1", port, timeout=5.0)
	try:
		conn.request("GET", "/docs")
		res = conn.getresponse()
		res.read()
		assert res.status == 301
		assert res.getheader("Location") == "/docs/"
		conn.request("GET", "/docs/")
		res = conn.getresponse()
		assert res.status == 200
		assert b"<a href='/docs/images/'>images</a>" in res.read()
		conn.request("GET", "/nope")
		res = conn.getresponse()
		assert res.status == 404
		assert b"/nope" in res.read()
	finally:
		conn.close()


def test_head_has_no_body(port: int):
	conn = HTTPConnection("127.0.0.1", port, timeout=5.0)
	try:
		conn.request("HEAD", "/notes.txt")
		res = conn.getresponse()
		assert res.status == 200
		assert res.getheader("Content-Length") == "5"
		assert res.read() == b""
		# The connection is still usable, no stray body was sent
		conn.request("GET", "/notes.txt")
		assert conn.getresponse().read() == b"hello"
	finally:
		conn.close()


def test_pipelined_requests(port: int):
	with socket.create_connection(("127.0.0.1", port), timeout=5.0) as client:
		client.sendall(
			b"GET /notes.txt HTTP/1.1\r\nHost: localhost\r\n\r\n"
			b"GET /missing HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
		)
		data = b""
		while chunk := client.recv(4096):
			data += chunk
	assert data.startswith(b"HTTP/1.1 200 OK\r\n")
	assert data.count(b"HTTP/1.1 ") == 2
	assert b"\r\n\r\nhelloHTTP/1.1 404 Not Found\r\n" in data


def test_http10_closes(port: int):
	with socket.create_connection(("127.0.0.1", port), timeout=5.0) as client:
		client.sendall(b"GET /notes.txt HTTP/1.0\r\n\r\n")
		data = b""
		while chunk := client.recv(4096):
			data += chunk
	assert data.startswith(b"HTTP/1.0 200 OK\r\n")
	assert data.endswith(b"\r\n\r\nhello")


def test_request_error_status(port: int):
	conn = HTTPConnection("127.0.0.1", port, timeout=5.0)
	try:
		conn.request("GET", "/forbidden/area")
		res = conn.getresponse()
		assert res.status == 403
		assert res.getheader("Content-Type") == "text/plain"
		assert res.read() == b"Forbidden zone"
		# The connection survives the error
		conn.request("GET", "/notes.txt")
		assert conn.getresponse().read() == b"hello"
	finally:
		conn.close()


# EOF
