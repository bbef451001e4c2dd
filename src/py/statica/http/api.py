from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from ..utils.htmpl import H, html, text

T = TypeVar("T")

# --
# == Response API
#
# Shorthands to build the responses a file server sends. Only `respond()` is
# abstract, `HTTPRequest` implements it.


class ResponseFactory(ABC, Generic[T]):
	@abstractmethod
	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> T: ...

	def error(
		self,
		status: int,
		content: str,
		contentType: str = "text/plain",
	) -> T:
		return self.respond(content=content, contentType=contentType, status=status)

	def notFound(self) -> T:
		return self.error(404, "Not Found")

	def fail(self, content: str, *, status: int = 500) -> T:
		return self.error(status, content)

	def notModified(self, contentType: str | None = None) -> T:
		"""A 304 carries no body, only the content type of the resource."""
		return self.respond(
			status=304,
			headers={"Content-Type": contentType} if contentType else None,
		)

	def redirect(self, url: str, permanent: bool = False) -> T:
		# SEE: https://developer.mozilla.org/en-US/docs/Web/HTTP/Redirections
		return self.respond(
			content="".join(html(text("Redirecting to "), H.a(url, href=url))),
			contentType="text/html",
			status=301 if permanent else 302,
			headers={"Location": url},
		)

	def respondHTML(self, content: str, status: int = 200) -> T:
		return self.respond(content=content, contentType="text/html", status=status)

	def respondBytes(
		self,
		content: bytes,
		contentType: str,
		headers: dict[str, str] | None = None,
	) -> T:
		return self.respond(content=content, contentType=contentType, headers=headers)


# EOF
