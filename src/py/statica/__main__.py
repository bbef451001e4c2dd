import argparse
import sys
from pathlib import Path

from .config import HOST, INDEX, LOG_REQUESTS, PORT, READ_TIMEOUT, ROOT, ServerConfig
from .server import run
from .services.files import FileService
from .utils.logging import error, info


def parse(args: list[str]) -> ServerConfig:
	"""Parses the command line into a server configuration, the environment
	providing the defaults."""
	parser = argparse.ArgumentParser(
		prog="statica",
		description="Serves the files of a directory over HTTP",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,
	)
	parser.add_argument(
		"root",
		nargs="?",
		default=ROOT,
		help="The directory to serve",
	)
	parser.add_argument(
		"-p",
		"--port",
		action="store",
		dest="port",
		type=int,
		help="Specifies the port",
		default=PORT,
	)
	parser.add_argument(
		"-H",
		"--host",
		action="store",
		dest="host",
		help="Specifies the interface to listen on",
		default=HOST,
	)
	parser.add_argument(
		"-i",
		"--index",
		action="store",
		dest="indexPage",
		help="The file served for a directory when it exists",
		default=INDEX,
	)
	parser.add_argument(
		"-t",
		"--read-timeout",
		action="store",
		dest="readTimeout",
		type=float,
		help="Maximum time (in seconds) for a filesystem operation",
		default=READ_TIMEOUT,
	)
	parser.add_argument(
		"-q",
		"--quiet",
		action="store_false",
		dest="logRequests",
		help="Does not log every request",
		default=LOG_REQUESTS,
	)
	options = parser.parse_args(args)
	return ServerConfig(
		port=options.port,
		root=Path(options.root),
		indexPage=options.indexPage,
		host=options.host,
		readTimeout=options.readTimeout,
		logRequests=options.logRequests,
	)


def main(args: list[str] | None = None) -> int:
	try:
		config = parse(sys.argv[1:] if args is None else args).validate()
	except ValueError as e:
		error(str(e), "CONFIG")
		return 1
	info("Serving files", Root=str(config.root), Index=config.indexPage)
	run(FileService(config), host=config.host, port=config.port)
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF
