from statica.utils.io import LineParser

REQUEST: bytes = b"GET /docs/ HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close\r\n\r\n"


def feedAll(parser: LineParser, chunks: list[bytes]) -> list[bytes]:
	lines: list[bytes] = []
	for chunk in chunks:
		offset: int = 0
		while offset < len(chunk):
			line, read = parser.feed(chunk, offset)
			offset += read
			if line is not None:
				lines.append(line)
	return lines


def test_lines_split_across_chunks():
	lines = feedAll(
		LineParser(),
		[
			b"GET /docs/ HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close",
			b"\r\n\r",
			b"\n",
		],
	)
	assert lines == REQUEST.split(b"\r\n")[:-1]


def test_one_byte_at_a_time():
	lines = feedAll(LineParser(), [REQUEST[i : i + 1] for i in range(len(REQUEST))])
	assert lines == REQUEST.split(b"\r\n")[:-1]


# EOF
