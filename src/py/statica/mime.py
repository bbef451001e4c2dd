from pathlib import Path

MIME_TYPES: dict[str, str] = dict(
	css="text/css",
	gif="image/gif",
	html="text/html",
	ico="image/x-icon",
	jpeg="image/jpeg",
	json="application/json",
	pdf="application/pdf",
)

DEFAULT_MIME_TYPE: str = "application/octet-stream"


def extension(path: Path | str) -> str:
	"""Returns the lower-cased text after the last dot of the file name, or an
	empty string when there is none."""
	# Leading dots mark hidden files, not extensions
	name = Path(path).name.lstrip(".")
	return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def lookup(path: Path | str) -> str:
	"""Guesses the content type from the given path"""
	return MIME_TYPES.get(extension(path), DEFAULT_MIME_TYPE)


# EOF
