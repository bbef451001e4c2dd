from typing import Any, ClassVar, Coroutine, Iterable, NamedTuple, Optional

from .http.model import HTTPRequest, HTTPResponse

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


class Service:
	"""A service answers the requests whose path starts with its prefix."""

	PREFIX: ClassVar[str] = ""

	def __init__(
		self, name: Optional[str] = None, *, prefix: str | None = None
	) -> None:
		self.name: str = name or self.__class__.__name__
		self.app: Optional[Application] = None
		self.prefix: str = (prefix or self.PREFIX).rstrip("/")

	async def start(self) -> None:
		"""Can be overridden to do asynchronous pre-start work"""
		pass

	async def stop(self) -> None:
		"""Can be overridden to do asynchronous post-stop work"""
		pass

	@property
	def isMounted(self) -> bool:
		return self.app is not None

	def matches(self, path: str) -> bool:
		return not self.prefix or path == self.prefix or path.startswith(f"{self.prefix}/")

	def process(
		self, request: HTTPRequest
	) -> HTTPResponse | Coroutine[Any, Any, HTTPResponse]:
		return request.notFound()

	def __repr__(self) -> str:
		return f"(Service {self.name}{' :mounted' if self.isMounted else ''})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	def __init__(self, services: list[Service] | None = None) -> None:
		self.services: list[Service] = []
		for service in services or ():
			self.mount(service)

	async def start(self) -> "Application":
		for srv in self.services:
			await srv.start()
		return self

	async def stop(self) -> "Application":
		for srv in self.services:
			await srv.stop()
		return self

	def process(
		self, request: HTTPRequest
	) -> HTTPResponse | Coroutine[Any, Any, HTTPResponse]:
		"""Hands the request to the mounted service with the longest matching
		prefix. The method is not taken into account, only the path."""
		path: str = request.path or "/"
		for service in self.services:
			if service.matches(path):
				return service.process(request)
		return request.notFound()

	def mount(self, service: Service) -> Service:
		if service.isMounted:
			raise RuntimeError(
				f"Cannot mount service, it is already mounted: {service}"
			)
		service.app = self
		self.services.append(service)
		self.services.sort(key=lambda _: len(_.prefix), reverse=True)
		return service


class Components(NamedTuple):
	"""Groups Application and Service objects together"""

	app: Application
	services: list[Service]

	@staticmethod
	def Make(components: Iterable[Application | Service]) -> "Components":
		apps: list[Application] = []
		services: list[Service] = []
		for item in components:
			if isinstance(item, Application):
				apps.append(item)
			elif isinstance(item, Service):
				services.append(item)
			else:
				raise RuntimeError(f"Unsupported component type {type(item)}: {item}")
		if len(apps) > 1:
			raise RuntimeError(f"Only one application can be mounted, got: {apps}")
		return Components(apps[0] if apps else Application(), services)


def mount(*components: Application | Service) -> Application:
	"""Mounts the given components into and application"""
	c = Components.Make(components)
	for service in c.services:
		c.app.mount(service)
	return c.app


# EOF
