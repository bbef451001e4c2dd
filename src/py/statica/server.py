import asyncio
import errno
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, Callable, NamedTuple

from .config import HOST, PORT
from .http.model import (
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestError,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .model import Application, Service, mount
from .utils.limits import LimitType, unlimit
from .utils.logging import debug, error, event, exception, info, logged, warning


class ServerOptions(NamedTuple):
	host: str = "0.0.0.0"  # nosec: B104
	port: int = 8000
	backlog: int = 10_000
	# How long an accept waits before checking the stop condition again
	polling: float = 1.0
	readsize: int = 4_096
	# Idle time after which a keep-alive connection is closed
	keepalive: float = 60.0
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True
	onListen: Callable[[int], None] | None = None


OPTIONS: ServerOptions = ServerOptions()

# Sent as-is when the application fails to produce a response
SERVER_ERROR: bytes = (
	b"HTTP/1.1 500 Internal Server Error\r\n"
	b"Content-Type: text/plain\r\n"
	b"Content-Length: 21\r\n"
	b"Connection: close\r\n"
	b"\r\n"
	b"Internal server error"
)


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True
	port: int = 0

	def stop(self) -> None:
		info("Server stopping")
		self.isRunning = False

	def onException(
		self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
	) -> None:
		e = context.get("exception")
		if e:
			exception(e)


class ConnectionStats(NamedTuple):
	status: HTTPProcessingStatus
	requests: int
	responses: int
	# A request was partially received when the connection ended
	pending: bool = False


class AIOSocketServer:
	"""Serves an application over non-blocking sockets driven by the
	asyncio loop, one task per client connection."""

	@classmethod
	async def OnConnection(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> None:
		"""Processes the requests of a client until the connection closes,
		the client opts out of keep-alive or the connection idles."""
		try:
			stats = await cls.Converse(app, client, loop=loop, options=options)
			if stats.pending and stats.status is HTTPProcessingStatus.Timeout:
				warning(
					"Client timed out",
					Requests=stats.requests,
					Responses=stats.responses,
				)
			elif stats.pending:
				warning(
					"Client did not feed a complete request",
					Requests=stats.requests,
					Responses=stats.responses,
				)
		except (ConnectionResetError, BrokenPipeError):
			debug("Connection reset by client")
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@classmethod
	async def Converse(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		options: ServerOptions,
	) -> ConnectionStats:
		buffer = bytearray(options.readsize)
		parser = HTTPParser()
		requests: int = 0
		responses: int = 0
		while True:
			try:
				n = await asyncio.wait_for(
					loop.sock_recv_into(client, buffer),
					timeout=options.keepalive,
				)
			except asyncio.TimeoutError:
				return ConnectionStats(
					HTTPProcessingStatus.Timeout, requests, responses, parser.hasPending
				)
			if not n:
				# The client closed its end
				return ConnectionStats(
					HTTPProcessingStatus.NoData, requests, responses, parser.hasPending
				)
			# A single read may hold more than one pipelined request
			for atom in parser.feed(bytes(buffer[:n])):
				logged(debug) and debug("Request atom", Atom=atom.__class__.__name__)
				if not isinstance(atom, HTTPRequest):
					continue
				requests += 1
				res = await cls.Respond(atom, app, client, loop=loop)
				if res is None:
					return ConnectionStats(
						HTTPProcessingStatus.Processing, requests, responses
					)
				responses += 1
				if not atom.keepAlive:
					return ConnectionStats(
						HTTPProcessingStatus.Processing, requests, responses
					)

	@staticmethod
	async def Respond(
		request: HTTPRequest,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
	) -> HTTPResponse | None:
		"""Sends the application's response to the request, or the canned
		server error when there is none, in which case `None` is returned."""
		res: HTTPResponse | None = None
		try:
			r = app.process(request)
			res = r if isinstance(r, HTTPResponse) else await r
		except HTTPRequestError as e:
			res = request.error(e.status or 500, e.message, e.contentType or "text/plain")
		except Exception as e:
			exception(e, f"Failed processing {request.method} {request.url}")
		if res is None:
			error("No response", "NORESPONSE", Path=request.path)
			await loop.sock_sendall(client, SERVER_ERROR)
			return None
		await loop.sock_sendall(client, res.head())
		# HEAD gets the same headers as GET, without the body
		if request.method != "HEAD" and res.payload:
			await loop.sock_sendall(client, res.payload)
		return res

	@classmethod
	async def Serve(
		cls,
		app: Application,
		options: ServerOptions = OPTIONS,
	) -> None:
		"""Accepts connections until stopped by a signal or the `condition`."""
		server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
		server.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
		try:
			server.bind((options.host, options.port))
		except OSError as e:
			server.close()
			error(
				f"Unable to bind to {options.host}:{options.port}, aborting.",
				"HOSTPORTERR",
			)
			raise e from e
		server.listen(options.backlog)
		server.setblocking(False)
		tasks: set[asyncio.Task[None]] = set()
		loop = asyncio.get_running_loop()
		state = ServerState(port=server.getsockname()[1])
		# Signal handlers can only be registered from the main thread
		if (
			options.stopSignals
			and threading.current_thread() is threading.main_thread()
		):
			loop.add_signal_handler(SIGINT, state.stop)
			loop.add_signal_handler(SIGTERM, state.stop)
		loop.set_exception_handler(state.onException)
		await app.start()
		info("Statica listening", icon="🚀", Host=options.host, Port=state.port)
		if options.onListen:
			options.onListen(state.port)
		try:
			while state.isRunning:
				if options.condition and not options.condition():
					break
				try:
					client, _ = await asyncio.wait_for(
						loop.sock_accept(server), timeout=options.polling or 1.0
					)
				except asyncio.TimeoutError:
					continue
				except OSError as e:
					if e.errno == errno.EMFILE:
						# Out of file descriptors, we wait for connections
						# to close.
						await asyncio.sleep(0.1)
					else:
						exception(e)
					continue
				task = loop.create_task(
					cls.OnConnection(app, client, loop=loop, options=options)
				)
				tasks.add(task)
				task.add_done_callback(tasks.discard)
		finally:
			server.close()
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)
			await app.stop()


def run(
	*components: Application | Service,
	host: str = HOST,
	port: int = PORT,
	backlog: int = OPTIONS.backlog,
	condition: Callable[[], bool] | None = None,
	polling: float = OPTIONS.polling,
	keepalive: float = OPTIONS.keepalive,
) -> None:
	"""Mounts the components and serves them until interrupted."""
	unlimit(LimitType.Files)
	options = ServerOptions(
		host=host,
		port=port,
		backlog=backlog,
		condition=condition,
		polling=polling,
		keepalive=keepalive,
	)
	try:
		asyncio.run(AIOSocketServer.Serve(mount(*components), options))
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
