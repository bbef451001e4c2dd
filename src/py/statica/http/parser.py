from typing import ClassVar, Iterator, Literal

from ..utils.io import LineParser
from .model import (
	HTTPAtom,
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

# NOTE: The wire is decoded as latin-1, which maps every byte to a character
# and therefore never fails on junk input.
WIRE_ENCODING: str = "latin-1"


class RequestLineParser:
	"""Parses an HTTP request line, ie. `GET /path?query HTTP/1.1`."""

	__slots__ = ["line", "value"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.value: HTTPRequestLine | None = None

	def flush(self) -> HTTPRequestLine | None:
		res = self.value
		self.reset()
		return res

	def reset(self) -> "RequestLineParser":
		self.line.reset()
		self.value = None
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		ln = line.decode(WIRE_ENCODING).strip()
		if not ln:
			# Tolerates empty lines between pipelined requests (RFC 7230 §3.5)
			return None, read
		i = ln.find(" ")
		j = ln.rfind(" ")
		if i == -1:
			self.value = HTTPRequestLine(ln, "/", "", "HTTP/1.0")
		elif i == j:
			# HTTP/0.9 style request line, without protocol
			p = ln[i + 1 :].split("?", 1)
			self.value = HTTPRequestLine(
				ln[:i], p[0], p[1] if len(p) > 1 else "", "HTTP/1.0"
			)
		else:
			p = ln[i + 1 : j].strip().split("?", 1)
			self.value = HTTPRequestLine(
				ln[:i], p[0], p[1] if len(p) > 1 else "", ln[j + 1 :]
			)
		return True, read

	def __str__(self) -> str:
		return f"RequestLineParser({self.value})"


class HeadersParser:
	__slots__ = ["headers", "contentLength", "line"]

	def __init__(self) -> None:
		self.line: LineParser = LineParser()
		self.headers: dict[str, str] = {}
		self.contentLength: int | None = None

	def flush(self) -> HTTPHeaders:
		res = HTTPHeaders(self.headers, self.contentLength)
		self.reset()
		return res

	def reset(self) -> "HeadersParser":
		self.line.reset()
		self.headers = {}
		self.contentLength = None
		return self

	def feed(
		self, chunk: bytes, start: int = 0
	) -> tuple[str | Literal[False] | None, int]:
		"""Feeds data from chunk, starting at `start` offset. Returns
		a value and the number of bytes read. When the value is `None`, no
		header has been extracted, when the value is `False` it's the empty
		line ending the headers, otherwise it's the name of the header that
		was added."""
		line, read = self.line.feed(chunk, start)
		if line is None:
			return None, read
		elif not line:
			return False, read
		ln: str = line.decode(WIRE_ENCODING)
		i = ln.find(":")
		if i == -1:
			return None, read
		h = ln[:i].strip().lower()
		v = ln[i + 1 :].strip()
		if h == "content-length":
			try:
				self.contentLength = int(v)
			except ValueError:
				self.contentLength = None
		n: str = headername(h)
		self.headers[n] = v
		return n, read

	def __str__(self) -> str:
		return f"HeadersParser({self.headers})"


class BodyLengthParser:
	"""Consumes the body of a request with Content-Length set"""

	__slots__ = ["expected", "read", "data"]

	def __init__(self) -> None:
		self.expected: int = 0
		self.read: int = 0
		self.data: list[bytes] = []

	def flush(self) -> HTTPBodyBlob:
		res = HTTPBodyBlob(b"".join(self.data), self.read)
		self.reset()
		return res

	def reset(self, length: int = 0) -> "BodyLengthParser":
		self.expected = length
		self.read = 0
		self.data.clear()
		return self

	def feed(self, chunk: bytes, start: int = 0) -> tuple[bool | None, int]:
		left: int = len(chunk) - start
		to_read: int = min(left, self.expected - self.read)
		self.data.append(chunk[start : start + to_read])
		self.read += to_read
		return (True if self.read >= self.expected else None), to_read


class HTTPParser:
	"""A stateful, incremental HTTP request parser. Chunks are fed as they
	come from the socket and complete requests are yielded, so that a
	request may span many chunks and a chunk may hold many (pipelined)
	requests."""

	METHOD_HAS_BODY: ClassVar[set[str]] = {"POST", "PUT", "PATCH"}

	def __init__(self) -> None:
		self.message: RequestLineParser = RequestLineParser()
		self.headers: HeadersParser = HeadersParser()
		self.bodyLength: BodyLengthParser = BodyLengthParser()
		self.parser: RequestLineParser | HeadersParser | BodyLengthParser = (
			self.message
		)
		self.requestLine: HTTPRequestLine | None = None
		self.requestHeaders: HTTPHeaders | None = None

	@property
	def hasPending(self) -> bool:
		"""Tells if a request has been partially fed."""
		return self.parser is not self.message or bool(self.message.line.buffer)

	def request(self, body: HTTPBodyBlob) -> HTTPRequest:
		line = self.requestLine
		if line is None:
			raise RuntimeError("Trying to create a request without a request line")
		return HTTPRequest(
			method=line.method,
			path=line.path,
			query=line.query or None,
			headers=self.requestHeaders or HTTPHeaders({}),
			protocol=line.protocol,
			body=body,
		)

	def feed(self, chunk: bytes) -> Iterator[HTTPAtom]:
		size: int = len(chunk)
		offset: int = 0
		while offset < size:
			# A partially read chunk is buffered by the underlying parser,
			# it doesn't need to be fed again.
			value, read = self.parser.feed(chunk, offset)
			offset += read
			if value is None:
				continue
			elif self.parser is self.message:
				self.requestLine = self.message.flush()
				self.requestHeaders = None
				if self.requestLine is not None:
					yield self.requestLine
					self.parser = self.headers
			elif self.parser is self.headers:
				if value is not False:
					# `value` is the header name, we wait for the next one
					continue
				headers = self.headers.flush()
				self.requestHeaders = headers
				yield headers
				line = self.requestLine
				length = headers.contentLength or 0
				if line and (line.method not in self.METHOD_HAS_BODY or length <= 0):
					yield self.request(HTTPBodyBlob(b"", 0))
					self.parser = self.message.reset()
				else:
					self.parser = self.bodyLength.reset(length)
					yield HTTPProcessingStatus.Body
			elif self.parser is self.bodyLength:
				yield self.request(self.bodyLength.flush())
				self.parser = self.message.reset()
			else:
				raise RuntimeError(f"Unsupported parser: {self.parser}")


# EOF
