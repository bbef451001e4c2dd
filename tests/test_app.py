import asyncio

import pytest

from statica import Application, FileService, HTTPRequest, HTTPResponse, Service, mount


class Hello(Service):
	def process(self, request: HTTPRequest) -> HTTPResponse:
		return request.respondHTML("hello")


def process(app: Application, url: str) -> HTTPResponse:
	r = app.process(HTTPRequest.Create(url))
	return r if isinstance(r, HTTPResponse) else asyncio.run(r)


def test_longest_prefix_wins(config):
	app = mount(FileService(config), Hello(prefix="/hello"))
	assert process(app, "/hello/world").payload == b"hello"
	assert process(app, "/hello").payload == b"hello"
	assert process(app, "/data.json").payload == b'{"answer": 42}'
	assert process(app, "/helloworld").status == 404


def test_percent_encoded_prefix(config):
	app = mount(FileService(config, prefix="/my%20files"))
	assert process(app, "/my%20files/notes.txt").payload == b"hello"
	res = process(app, "/my%20files/docs/")
	assert b"<a href='/my%20files/docs/guide.html'>guide.html</a>" in res.payload


def test_no_service():
	assert process(Application(), "/").status == 404


def test_mount_twice():
	hello = Hello()
	mount(hello)
	with pytest.raises(RuntimeError):
		mount(hello)


def test_unsupported_component():
	with pytest.raises(RuntimeError):
		mount(object())  # type: ignore[arg-type]


# EOF
