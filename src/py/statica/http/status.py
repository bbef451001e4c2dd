from http import HTTPStatus

# Reason phrases used on the status line, indexed by status code.
HTTP_STATUS: dict[int, str] = {_.value: _.phrase for _ in HTTPStatus}

# EOF
