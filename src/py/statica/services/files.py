import asyncio
import os
import posixpath
from pathlib import Path
from typing import Any, Callable, NamedTuple, TypeVar
from urllib.parse import quote, unquote

from ..cache import Error, FileMetadata, NotModified, evaluate
from ..config import ServerConfig
from ..http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from ..mime import extension, lookup
from ..model import Service
from ..utils.htmpl import H, html
from ..utils.logging import debug, event, info, logged, warning

T = TypeVar("T")


class RequestContext(NamedTuple):
	"""What the responders know about a request, built by the router."""

	request: HTTPRequest
	# The URL path, still percent-encoded, without the query
	path: str
	# The URL path once percent-decoded
	decodedURL: str
	# The local path the URL maps to, within the root
	decodedPath: Path

	@property
	def rawURL(self) -> str:
		return self.request.url

	@property
	def headers(self) -> dict[str, str]:
		return self.request.headers

	@property
	def hasTrailingSlash(self) -> bool:
		return self.path.endswith("/")


class DirectoryEntry(NamedTuple):
	name: str
	isDirectory: bool


def joinURL(base: str, name: str, isDirectory: bool = False) -> str:
	"""Joins a URL path and an entry name, directories get a trailing slash."""
	res = posixpath.join(base if base.endswith("/") else f"{base}/", name)
	return f"{res}/" if isDirectory else res


def describe(error: BaseException) -> str:
	"""A message for the client that doesn't leak local paths."""
	if isinstance(error, asyncio.TimeoutError):
		return "Operation timed out"
	elif isinstance(error, OSError) and error.strerror:
		return error.strerror
	else:
		return error.__class__.__name__


def listDirectory(path: Path) -> list[DirectoryEntry]:
	"""Lists the entries of the directory in the order the filesystem gives
	them."""
	with os.scandir(path) as entries:
		return [DirectoryEntry(_.name, _.is_dir()) for _ in entries]


class FileService(Service):
	"""Serves the files of a root directory. Every request goes through
	`route()`, which dispatches it to exactly one responder."""

	def __init__(
		self,
		config: ServerConfig | None = None,
		*,
		prefix: str | None = None,
	):
		self.config: ServerConfig = (config or ServerConfig()).validate()
		self.root: Path = self.config.root
		# Containment is checked against the canonical root, symlinks resolved
		self.canonicalRoot: Path = Path(os.path.realpath(self.root))
		super().__init__(prefix=prefix)

	async def io(self, operation: Callable[..., T], *args: Any) -> T:
		"""Runs a blocking filesystem operation in the default executor,
		bounded by the configured read timeout."""
		loop = asyncio.get_running_loop()
		return await asyncio.wait_for(
			loop.run_in_executor(None, operation, *args),
			timeout=self.config.readTimeout,
		)

	def localPath(self, path: str) -> tuple[str, Path] | None:
		"""Maps the URL path to the decoded URL and the local path it names
		under the root, `None` when it can't name one. Symlinks are not
		resolved here, see `contains()`."""
		decoded: str = unquote(path)
		if "\x00" in decoded:
			return None
		# The prefix is matched against the raw path, so it is stripped
		# before decoding.
		relative: str = unquote(path[len(self.prefix) :]) if self.prefix else decoded
		normalized: str = posixpath.normpath(f"/{relative.lstrip('/')}")
		return decoded, self.root.joinpath(normalized.lstrip("/"))

	async def contains(self, path: Path) -> bool:
		"""Tells if the path, once its symlinks are resolved, is within the
		root."""
		canonical = Path(await self.io(os.path.realpath, path))
		return canonical == self.canonicalRoot or self.canonicalRoot in canonical.parents

	def process(self, request: HTTPRequest) -> Any:
		return self.route(request)

	# =========================================================================
	# ROUTER
	# =========================================================================

	async def route(self, request: HTTPRequest) -> HTTPResponse:
		if self.config.logRequests:
			event(request.method, request.url)
		try:
			return await self.dispatch(request)
		except HTTPRequestError as e:
			return request.fail(e.message, status=e.status or 500)

	async def dispatch(self, request: HTTPRequest) -> HTTPResponse:
		resolved = self.localPath(request.path)
		context = RequestContext(
			request=request,
			path=request.path,
			decodedURL=resolved[0] if resolved else unquote(request.path),
			decodedPath=resolved[1] if resolved else self.root,
		)
		try:
			inside: bool = resolved is not None and await self.contains(
				context.decodedPath
			)
			if not inside:
				warning("Path outside of root", URL=context.rawURL)
				return self.respondNotFound(context)
			stat = await self.io(os.stat, context.decodedPath)
		except (OSError, asyncio.TimeoutError):
			return self.respondNotFound(context)
		metadata = FileMetadata.FromStat(stat)
		if metadata.isDirectory and context.hasTrailingSlash:
			return await self.respondDirectory(context.decodedPath, context)
		elif metadata.isDirectory:
			return self.respondRedirect(context)
		elif context.hasTrailingSlash:
			# A trailing slash names a directory, which this is not
			return self.respondNotFound(context)
		else:
			return await self.respondFile(context.decodedPath, context)

	# =========================================================================
	# RESPONDERS
	# =========================================================================

	async def respondFile(self, path: Path, context: RequestContext) -> HTTPResponse:
		request = context.request
		try:
			content: bytes = await self.io(path.read_bytes)
		except (OSError, asyncio.TimeoutError) as e:
			warning("Could not read file", URL=context.rawURL, Reason=describe(e))
			raise HTTPRequestError(f"Could not read file: {describe(e)}") from e
		try:
			# Metadata is read on every request, it is never stale
			metadata: FileMetadata | None = FileMetadata.FromStat(
				await self.io(os.stat, path)
			)
		except (OSError, asyncio.TimeoutError) as e:
			warning("Could not stat file", URL=context.rawURL, Reason=describe(e))
			metadata = None
		decision = evaluate(metadata, context.headers, extension(path))
		content_type: str = lookup(path)
		if isinstance(decision, NotModified):
			logged(debug) and debug("Not modified", URL=context.rawURL)
			return request.notModified(content_type)
		elif isinstance(decision, Error):
			raise HTTPRequestError(decision.message)
		else:
			info("Serving file", URL=context.rawURL, Size=len(content))
			return request.respondBytes(
				content, content_type, headers=decision.headers
			)

	async def respondDirectory(
		self, path: Path, context: RequestContext
	) -> HTTPResponse:
		request = context.request
		index_path: Path = path / self.config.indexPage
		try:
			has_index: bool = await self.io(os.path.exists, index_path)
			if has_index and not await self.contains(index_path):
				warning("Index outside of root", URL=context.rawURL)
				return self.respondNotFound(context)
			entries = None if has_index else await self.io(listDirectory, path)
		except (OSError, asyncio.TimeoutError) as e:
			warning("Could not list directory", URL=context.rawURL, Reason=describe(e))
			raise HTTPRequestError(f"Could not list directory: {describe(e)}") from e
		if entries is None:
			return await self.respondFile(index_path, context)
		base: str = context.decodedURL
		return request.respondHTML(
			"".join(
				html(
					H.h1(f"Index of {base}"),
					*(
						H.p(
							H.a(
								_.name,
								href=quote(joinURL(base, _.name, _.isDirectory)),
							)
						)
						for _ in entries
					),
				)
			)
		)

	def respondRedirect(self, context: RequestContext) -> HTTPResponse:
		query = context.request.query
		location: str = f"{context.path}/{f'?{query}' if query else ''}"
		return context.request.redirect(location, permanent=True)

	def respondNotFound(self, context: RequestContext) -> HTTPResponse:
		return context.request.error(
			404,
			"".join(
				html(
					H.h1("Not Found"),
					H.p(
						f"The requested URL {context.rawURL} was not found on this server."
					),
				)
			),
			contentType="text/html",
		)


# EOF
