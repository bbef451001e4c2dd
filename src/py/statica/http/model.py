from enum import Enum
from typing import Any, NamedTuple, TypeAlias, Union

from ..utils.io import DEFAULT_ENCODING
from .api import ResponseFactory
from .status import HTTP_STATUS

# -----------------------------------------------------------------------------
#
# HEADER NAMES
#
# -----------------------------------------------------------------------------


def normalizeHeader(name: str) -> str:
	return "-".join(_.capitalize() for _ in name.split("-"))


# Only these names are memoized, so that arbitrary client headers don't grow
# the table.
HEADER_NAMES: dict[str, str] = {
	_.lower(): normalizeHeader(_)
	for _ in (
		"Accept",
		"Accept-Encoding",
		"Accept-Language",
		"Cache-Control",
		"Connection",
		"Content-Length",
		"Content-Type",
		"Etag",
		"Expires",
		"Host",
		"If-Modified-Since",
		"If-None-Match",
		"Last-Modified",
		"Location",
		"Referer",
		"User-Agent",
	)
}


def headername(name: str) -> str:
	"""Normalizes the header name as `Kebab-Case`, which makes header lookups
	case-insensitive."""
	return HEADER_NAMES.get(name.lower()) or normalizeHeader(name.lower())


# -----------------------------------------------------------------------------
#
# PARSER ATOMS
#
# -----------------------------------------------------------------------------


class HTTPRequestLine(NamedTuple):
	method: str
	path: str
	query: str
	protocol: str


class HTTPHeaders(NamedTuple):
	headers: dict[str, str]
	contentLength: int | None = None


class HTTPProcessingStatus(Enum):
	Processing = 0
	Body = 1
	Timeout = 10
	NoData = 11


class HTTPBodyBlob(NamedTuple):
	payload: bytes = b""
	length: int = 0


HTTPAtom: TypeAlias = Union[
	HTTPRequestLine,
	HTTPHeaders,
	HTTPProcessingStatus,
	"HTTPRequest",
]


class HTTPRequestError(Exception):
	"""Aborts the processing of a request with the given status, 500 when
	not given."""

	def __init__(
		self,
		message: str,
		status: int | None = None,
		contentType: str | None = None,
	):
		super().__init__(message)
		self.message: str = message
		self.status: int | None = status
		self.contentType: str | None = contentType


# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class HTTPRequest(ResponseFactory["HTTPResponse"]):
	"""A parsed request, which is also the factory for its responses."""

	__slots__ = ["method", "path", "query", "protocol", "_headers", "_body"]

	def __init__(
		self,
		method: str,
		path: str,
		query: str | None,
		headers: HTTPHeaders,
		body: HTTPBodyBlob | None = None,
		protocol: str = "HTTP/1.1",
	):
		super().__init__()
		self.method: str = method
		# NOTE: The path is kept as it was on the wire, percent-encoding included
		self.path: str = path
		self.query: str | None = query
		self.protocol: str = protocol
		self._headers: HTTPHeaders = headers
		self._body: HTTPBodyBlob | None = body

	@staticmethod
	def Create(
		path: str,
		headers: dict[str, str] | None = None,
		*,
		method: str = "GET",
		protocol: str = "HTTP/1.1",
	) -> "HTTPRequest":
		"""Creates a request out of a raw URL, which may include a query."""
		p = path.split("?", 1)
		return HTTPRequest(
			method=method,
			path=p[0],
			query=p[1] if len(p) > 1 else None,
			headers=HTTPHeaders(
				{headername(k): v for k, v in (headers or {}).items()}
			),
			protocol=protocol,
		)

	@property
	def headers(self) -> dict[str, str]:
		return self._headers.headers

	@property
	def url(self) -> str:
		"""The raw URL, as given on the request line."""
		return f"{self.path}?{self.query}" if self.query else self.path

	@property
	def contentLength(self) -> int | None:
		return self._headers.contentLength

	@property
	def body(self) -> HTTPBodyBlob:
		return self._body or HTTPBodyBlob()

	@property
	def keepAlive(self) -> bool:
		"""HTTP/1.1 connections stay open unless the client asks otherwise."""
		return (
			self.protocol != "HTTP/1.0"
			and (self.header("Connection") or "").lower() != "close"
		)

	def header(self, name: str) -> str | None:
		return self._headers.headers.get(headername(name))

	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> "HTTPResponse":
		return HTTPResponse.Create(
			content=content,
			contentType=contentType,
			status=status,
			headers=headers,
			protocol=self.protocol,
		)

	def __str__(self) -> str:
		return f"Request({self.method} {self.url} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	"""A complete response, its body held in memory."""

	__slots__ = ["protocol", "status", "message", "headers", "body"]

	@staticmethod
	def Create(
		content: str | bytes | None = None,
		contentType: str | None = None,
		headers: dict[str, str] | None = None,
		status: int = 200,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		"""Encodes `content`, setting `Content-Type` and `Content-Length`
		accordingly."""
		res_headers: dict[str, str] = {
			headername(k): v for k, v in (headers or {}).items()
		}
		if isinstance(content, str):
			payload: bytes | None = content.encode(DEFAULT_ENCODING)
		elif isinstance(content, (bytes, bytearray)):
			payload = bytes(content)
		elif content is None:
			payload = None
		else:
			raise ValueError(f"Unsupported content {type(content)}:{content}")
		if contentType is not None:
			res_headers["Content-Type"] = contentType
		if payload is not None:
			res_headers["Content-Length"] = str(len(payload))
		return HTTPResponse(
			protocol=protocol,
			status=status,
			headers=res_headers,
			body=None if payload is None else HTTPBodyBlob(payload, len(payload)),
		)

	def __init__(
		self,
		protocol: str,
		status: int,
		headers: dict[str, str],
		body: HTTPBodyBlob | None = None,
	):
		self.protocol: str = protocol
		self.status: int = status
		self.message: str = HTTP_STATUS.get(status, "Unknown status")
		self.headers: dict[str, str] = headers
		self.body: HTTPBodyBlob | None = body

	@property
	def payload(self) -> bytes:
		return self.body.payload if self.body else b""

	def getHeader(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def head(self) -> bytes:
		"""Serializes the status line and headers, ending with the blank
		line."""
		lines: list[str] = [f"{self.protocol} {self.status} {self.message}"]
		lines += [f"{k}: {v}" for k, v in self.headers.items()]
		# A 304 has no body by definition, other bodiless responses still
		# need a length for the connection to be reused.
		if self.status != 304 and "Content-Length" not in self.headers:
			lines.append("Content-Length: 0")
		# Header values are latin-1 per RFC 7230, which covers ascii
		return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")

	def __str__(self) -> str:
		return f"Response({self.protocol} {self.status} {self.message} {self.headers})"


# EOF
