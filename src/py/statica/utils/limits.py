import resource
from enum import Enum
from typing import NamedTuple


class LimitType(Enum):
	Files = resource.RLIMIT_NOFILE


# Darwin reports huge hard limits that overflow `setrlimit`, so we cap
# what we ask for.
REASONABLE_LIMITS: dict[LimitType, int] = {
	LimitType.Files: 10 * 10240,
}


class Limit(NamedTuple):
	type: LimitType
	soft: int
	hard: int


def limit(scope: LimitType) -> Limit:
	return Limit(scope, *resource.getrlimit(scope.value))


def unlimit(scope: LimitType, ratio: float = 1.0) -> int | bool:
	"""Raises the soft limit for `scope` towards its hard limit, returning
	the new soft limit or `False` when the system refused."""
	lm = limit(scope)
	hard = lm.hard if lm.hard != resource.RLIM_INFINITY else REASONABLE_LIMITS[scope]
	target = min(REASONABLE_LIMITS[scope], int(lm.soft + ratio * (hard - lm.soft)))
	if target <= lm.soft:
		return lm.soft
	try:
		resource.setrlimit(scope.value, (target, lm.hard))
		return target
	except (ValueError, OSError):
		return False


# EOF
