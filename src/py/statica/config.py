from os import getenv
from pathlib import Path
from typing import Mapping, NamedTuple

PORT: int = int(getenv("PORT", 8000))

# If we're starting in a development environment, we want the server to be
# accessible from everywhere
HOST: str = getenv("HOST", "0.0.0.0")  # nosec: B104

ROOT: str = getenv("STATICA_ROOT", ".")

INDEX: str = getenv("STATICA_INDEX", "index.html")

# Upper bound (in seconds) for a single filesystem operation
READ_TIMEOUT: float = float(getenv("STATICA_READ_TIMEOUT", 10.0))

LOG_REQUESTS: bool = getenv("STATICA_LOG_REQUESTS", "1") == "1"


class ServerConfig(NamedTuple):
	"""The configuration of a file server, created once at startup and
	passed to the components that need it."""

	port: int = PORT
	root: Path = Path(ROOT)
	indexPage: str = INDEX
	host: str = HOST
	readTimeout: float = READ_TIMEOUT
	logRequests: bool = LOG_REQUESTS

	@staticmethod
	def FromEnviron(environ: Mapping[str, str]) -> "ServerConfig":
		"""Builds a configuration from the given environment, falling back on
		the defaults for missing variables."""
		return ServerConfig(
			port=int(environ.get("PORT", 8000)),
			root=Path(environ.get("STATICA_ROOT", ".")),
			indexPage=environ.get("STATICA_INDEX", "index.html"),
			host=environ.get("HOST", "0.0.0.0"),  # nosec: B104
			readTimeout=float(environ.get("STATICA_READ_TIMEOUT", 10.0)),
			logRequests=environ.get("STATICA_LOG_REQUESTS", "1") == "1",
		)

	def validate(self) -> "ServerConfig":
		"""Returns a copy with an absolute root, raising `ValueError` when the
		configuration can't be served."""
		if not (0 <= self.port < 65536):
			raise ValueError(f"Port must be between 0 and 65535, got: {self.port}")
		if not self.indexPage or "/" in self.indexPage:
			raise ValueError(f"Index page must be a plain file name, got: {self.indexPage!r}")
		if self.readTimeout <= 0:
			raise ValueError(f"Read timeout must be positive, got: {self.readTimeout}")
		root = Path(self.root).absolute()
		if not root.is_dir():
			raise ValueError(f"Root is not a directory: {root}")
		return self._replace(root=root)


# EOF
