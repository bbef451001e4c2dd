import io

import pytest

from statica.utils import logging
from statica.utils.htmpl import H, html, raw
from statica.utils.logging import LogLevel, LogSink


@pytest.fixture
def stream(monkeypatch) -> io.StringIO:
	out = io.StringIO()
	monkeypatch.setattr(LogSink, "stream", out)
	monkeypatch.setattr(LogSink, "level", LogLevel.Info)
	return out


def test_info_with_context(stream: io.StringIO):
	logging.info("Serving file", URL="/a b.css", Size=12)
	line = stream.getvalue()
	assert "Serving file" in line
	assert "'/a b.css'" in line
	assert "12" in line


def test_level_threshold(stream: io.StringIO):
	logging.debug("Hidden")
	assert stream.getvalue() == ""
	assert not logging.logged(logging.debug)
	previous = logging.setLevel(LogLevel.Warning)
	assert previous is LogLevel.Info
	logging.info("Hidden too")
	logging.warning("Shown")
	assert "Hidden" not in stream.getvalue()
	assert "Shown" in stream.getvalue()
	assert logging.logged(logging.error)


def test_event(stream: io.StringIO):
	logging.event("GET", "/docs/")
	assert "GET" in stream.getvalue() and "/docs/" in stream.getvalue()


def test_exception(stream: io.StringIO):
	try:
		raise ValueError("boom")
	except ValueError as e:
		assert logging.exception(e, "Failed") is e
	assert "Failed: [ValueError] boom" in stream.getvalue()


def test_parse_level():
	assert LogLevel.Parse("WARNING", LogLevel.Info) is LogLevel.Warning
	assert LogLevel.Parse("nope", LogLevel.Info) is LogLevel.Info
	assert LogLevel.Parse(None, LogLevel.Debug) is LogLevel.Debug


def test_htmpl():
	assert "".join(html(H.p(H.a("a&b", href="/x?a=1&b='2'")))) == (
		"<p><a href='/x?a=1&amp;b=&#x27;2&#x27;'>a&amp;b</a></p>"
	)
	assert str(H.br()) == "<br>"
	assert str(H.div(raw("<i>ok</i>"), _="box")) == "<div class='box'><i>ok</i></div>"
	assert "".join(html(H.p(), doctype="html")) == "<!DOCTYPE html>\n<p></p>"


# EOF
