import hashlib
import os
import stat
import time
from base64 import b64encode
from email.utils import formatdate
from typing import Mapping, NamedTuple, TypeAlias

from .http.model import headername

# Extensions that get an `Expires`/`Cache-Control` pair, and for how long
CACHEABLE: frozenset[str] = frozenset(("gif", "png", "jpg", "jpeg", "js", "css"))
MAX_AGE: int = 60

# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


class FileMetadata(NamedTuple):
	modifiedTime: float
	size: int
	isDirectory: bool

	@staticmethod
	def FromStat(st: os.stat_result) -> "FileMetadata":
		return FileMetadata(
			modifiedTime=st.st_mtime,
			size=st.st_size,
			isDirectory=stat.S_ISDIR(st.st_mode),
		)


class Fresh(NamedTuple):
	"""The client has to get the full body, with these validators."""

	etag: str
	lastModified: str
	expires: str | None = None
	cacheControl: str | None = None

	@property
	def headers(self) -> dict[str, str]:
		res: dict[str, str] = {}
		if self.expires is not None:
			res["Expires"] = self.expires
		if self.cacheControl is not None:
			res["Cache-Control"] = self.cacheControl
		res["Last-Modified"] = self.lastModified
		res["Etag"] = self.etag
		return res


class NotModified(NamedTuple):
	"""The client copy is still valid."""

	lastModified: str


class Error(NamedTuple):
	"""The metadata could not be obtained."""

	message: str


CacheDecision: TypeAlias = Fresh | NotModified | Error

# -----------------------------------------------------------------------------
#
# POLICY
#
# -----------------------------------------------------------------------------


def httpdate(timestamp: float) -> str:
	"""Formats the timestamp as an RFC 7231 date, ie.
	`Sun, 06 Nov 1994 08:49:37 GMT`."""
	return formatdate(timestamp, usegmt=True)


def etag(lastModified: str) -> str:
	"""The entity tag is derived from the modification date and not from the
	content, two files modified at the same second share it."""
	digest = hashlib.sha1(lastModified.encode("ascii"), usedforsecurity=False).digest()
	return b64encode(digest).decode("ascii")


def evaluate(
	metadata: FileMetadata | None,
	headers: Mapping[str, str],
	extension: str,
	*,
	now: float | None = None,
) -> CacheDecision:
	"""Decides how a file should be sent given its `metadata` and the request
	`headers` (keyed by `Kebab-Case` names). The first matching rule wins:

	1. `If-Modified-Since` equal to the `Last-Modified` date string gives
	   `NotModified`. This is an exact string comparison, a later date does
	   not match, which deviates from RFC 7232.
	2. `If-None-Match` equal to the entity tag gives `NotModified`.
	3. Otherwise the file is `Fresh`, with an expiry for cacheable
	   extensions.
	"""
	if metadata is None:
		return Error("File metadata is not available")
	last_modified: str = httpdate(metadata.modifiedTime)
	if headers.get(headername("If-Modified-Since")) == last_modified:
		return NotModified(last_modified)
	tag: str = etag(last_modified)
	if headers.get(headername("If-None-Match")) == tag:
		return NotModified(last_modified)
	if extension.lower() in CACHEABLE:
		return Fresh(
			etag=tag,
			lastModified=last_modified,
			expires=httpdate((time.time() if now is None else now) + MAX_AGE),
			cacheControl=f"max-age={MAX_AGE}",
		)
	else:
		return Fresh(etag=tag, lastModified=last_modified)


# EOF
