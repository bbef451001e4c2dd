import pytest

from statica.mime import DEFAULT_MIME_TYPE, extension, lookup


@pytest.mark.parametrize(
	"path,expected",
	[
		("style.css", "text/css"),
		("/a/b/anim.gif", "image/gif"),
		("index.html", "text/html"),
		("favicon.ico", "image/x-icon"),
		("photo.jpeg", "image/jpeg"),
		("PHOTO.JPEG", "image/jpeg"),
		("data.json", "application/json"),
		("paper.pdf", "application/pdf"),
	],
)
def test_table(path: str, expected: str):
	assert lookup(path) == expected


@pytest.mark.parametrize(
	"path", ["notes.txt", "README", "archive.tar.gz", ".bashrc", "dir.d/file"]
)
def test_default(path: str):
	assert lookup(path) == DEFAULT_MIME_TYPE == "application/octet-stream"


def test_extension():
	assert extension("a/b.c/d.TXT") == "txt"
	assert extension("a/b.c/d") == ""
	assert extension(".hidden") == ""
	assert extension(".hidden.css") == "css"


# EOF
