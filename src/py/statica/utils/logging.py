import os
import sys
import time
from enum import Enum
from typing import Any, Callable, ClassVar, NamedTuple, TextIO

# --
# Logging writes one line per entry on `LogSink.stream`, colored by level,
# with the entry context rendered as `Key=value` pairs.

TLogValue = bool | int | float | str | bytes | list[Any] | tuple[Any, ...] | None


class Term:
	"""ANSI sequences, empty when colors are disabled."""

	# SEE: https://no-color.org/
	NO_COLOR: ClassVar[bool] = "NO_COLOR" in os.environ
	COLOR: ClassVar[bool] = "FORCE_COLOR" in os.environ or not NO_COLOR
	BOLD: ClassVar[str] = "\033[1m" if COLOR else ""
	RESET: ClassVar[str] = "\033[0m" if COLOR else ""

	@classmethod
	def Color(cls, color: int) -> str:
		return f"\033[0;38;5;{color}m" if cls.COLOR else ""


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40  # A managed error
	Exception = 50  # An un-managed error

	@staticmethod
	def Parse(name: str | None, default: "LogLevel") -> "LogLevel":
		for level in LogLevel:
			if name and level.name.lower() == name.strip().lower():
				return level
		return default


LOG_LEVEL_COLOR: dict[LogLevel, int] = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}


class LogEntry(NamedTuple):
	time: float
	level: LogLevel
	message: str
	# Error code for errors, value for events
	code: TLogValue = None
	context: dict[str, TLogValue] | None = None
	icon: str | None = None


class LogSink:
	"""Where entries end up, with the minimum level that gets through."""

	stream: ClassVar[TextIO] = sys.stderr
	level: ClassVar[LogLevel] = LogLevel.Parse(
		os.environ.get("STATICA_LOG_LEVEL"), LogLevel.Info
	)


def setLevel(level: LogLevel) -> LogLevel:
	previous = LogSink.level
	LogSink.level = level
	return previous


def formatData(value: Any) -> str:
	if value is None or value == () or value == [] or value == {}:
		return "◌"
	elif isinstance(value, dict):
		return " ".join(
			f"{Term.BOLD}{k}{Term.RESET}={formatData(v)}" for k, v in value.items()
		)
	elif isinstance(value, (list, tuple)):
		return ",".join(formatData(v) for v in value)
	elif isinstance(value, str):
		return repr(value) if " " in value else value
	elif isinstance(value, bool):
		return "✓" if value else "✗"
	elif isinstance(value, float):
		return f"{value:0.2f}"
	else:
		return str(value)


def send(entry: LogEntry) -> LogEntry:
	if entry.level.value < LogSink.level.value:
		return entry
	clr: str = Term.Color(LOG_LEVEL_COLOR[entry.level])
	icon: str = f" {entry.icon}" if entry.icon else ""
	code: str = f" [{formatData(entry.code)}]" if entry.code is not None else ""
	context: str = f" {formatData(entry.context)}" if entry.context else ""
	LogSink.stream.write(
		f"{clr}{Term.BOLD}[statica]{Term.RESET}{clr}{icon}{code} {entry.message}{context}{Term.RESET}\n"
	)
	LogSink.stream.flush()
	return entry


def log(
	level: LogLevel,
	message: str,
	code: TLogValue = None,
	*,
	icon: str | None = None,
	context: dict[str, TLogValue] | None = None,
) -> LogEntry:
	return send(LogEntry(time.time(), level, message, code, context, icon))


def debug(message: str, *, icon: str | None = None, **context: TLogValue) -> LogEntry:
	return log(LogLevel.Debug, message, icon=icon, context=context)


def info(message: str, *, icon: str | None = None, **context: TLogValue) -> LogEntry:
	return log(LogLevel.Info, message, icon=icon, context=context)


def warning(
	message: str, *, icon: str | None = None, **context: TLogValue
) -> LogEntry:
	return log(LogLevel.Warning, message, icon=icon, context=context)


def error(
	message: str,
	code: int | str | None,
	*,
	icon: str | None = None,
	**context: TLogValue,
) -> LogEntry:
	return log(LogLevel.Error, message, code, icon=icon, context=context)


def event(name: str, value: Any = None, **context: TLogValue) -> LogEntry:
	"""Logs that something happened, like a request coming in, `value`
	being what it happened to."""
	message: str = name if value is None else f"{name} {formatData(value)}"
	return log(LogLevel.Info, message, context=context)


def exception(
	exception: BaseException,
	message: str | None = None,
) -> BaseException:
	"""Logs the exception with its traceback, regardless of the level."""
	name: str = exception.__class__.__name__
	lines: list[str] = [
		f"!!! EXCP {f'{message}: ' if message else ''}[{name}] {exception}"
	]
	tb = exception.__traceback__
	while tb:
		code = tb.tb_frame.f_code
		lines.append(
			f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}"
		)
		tb = tb.tb_next
	try:
		LogSink.stream.write("\n".join(lines) + "\n")
		LogSink.stream.flush()
	except (OSError, ValueError):  # nosec: B110
		# A closed stream must not raise from within exception handlers
		pass
	# Returned so that callers can write `raise exception(e)`
	return exception


LEVELS: dict[Callable[..., Any], LogLevel] = {
	debug: LogLevel.Debug,
	info: LogLevel.Info,
	warning: LogLevel.Warning,
	error: LogLevel.Error,
}


def logged(item: Callable[..., Any]) -> bool:
	"""Tells if the given logging function currently emits, so that
	building an expensive entry can be skipped."""
	return LEVELS.get(item, LogLevel.Info).value >= LogSink.level.value


# EOF
