import asyncio
import os
from pathlib import Path
from typing import Callable

import pytest

from statica import FileService, HTTPRequest, HTTPResponse, ServerConfig

# Tue, 14 Nov 2023 22:13:20 GMT
MTIME: int = 1_700_000_000
LAST_MODIFIED: str = "Tue, 14 Nov 2023 22:13:20 GMT"

Fetch = Callable[..., HTTPResponse]


@pytest.fixture
def root(tmp_path: Path) -> Path:
	"""A served tree, with a secret file right outside of it."""
	public = tmp_path / "public"
	public.mkdir()
	(tmp_path / "secret.txt").write_text("secret")
	(public / "style.css").write_text("body { color: red; }")
	(public / "logo.PNG").write_bytes(b"\x89PNG\r\n")
	(public / "data.json").write_text('{"answer": 42}')
	(public / "notes.txt").write_text("hello")
	(public / "README").write_text("no extension")
	(public / "docs").mkdir()
	(public / "docs" / "guide.html").write_text("<p>guide</p>")
	(public / "docs" / "images").mkdir()
	(public / "site").mkdir()
	(public / "site" / "index.html").write_text("<h1>Site</h1>")
	for path in public.rglob("*"):
		os.utime(path, (MTIME, MTIME))
	return public


@pytest.fixture
def lastModified() -> str:
	return LAST_MODIFIED


@pytest.fixture
def config(root: Path) -> ServerConfig:
	return ServerConfig(root=root, logRequests=False)


@pytest.fixture
def service(config: ServerConfig) -> FileService:
	return FileService(config)


@pytest.fixture
def fetch(service: FileService) -> Fetch:
	"""Routes a request for the given URL through the service."""

	def f(
		url: str, headers: dict[str, str] | None = None, method: str = "GET"
	) -> HTTPResponse:
		return asyncio.run(
			service.route(HTTPRequest.Create(url, headers, method=method))
		)

	return f


# EOF
