"""
Timestamped (LRC) lyrics parsing and position lookup.

A lyric line starts with one or more [MM:SS.hh] tags followed by the text:

	[00:12.50][00:45.00]Hello world

Every tag on a line becomes its own Line sharing the text. Lines without a
leading time tag ([ar:Artist], [ti:Title], plain text) are ignored.
"""

import bisect
import html
import re
from dataclasses import dataclass
from operator import attrgetter

from .errors import ParseError
from .logger import LOGGER

TIMED_LINE_RE = re.compile(r'^((?:\[[0-9]{2,}:[0-9]{2,}\.[0-9]{2,}\])+)(.*)')
TIME_TAG_RE = re.compile(r'\[([0-9]{2,}):([0-9]{2,})\.([0-9]{2,})\]')


@dataclass(frozen=True)
class Line:
	timestamp: int = 0  # milliseconds from the start of the track
	text: str = ""


EMPTY_LINE = Line()


def parse_time_tags(tags):
	"""Decode a run of [MM:SS.hh] tags into millisecond offsets.

	Only the first two fractional digits count (hundredths); any further
	digits are dropped, not rounded. A tag whose fields fail to convert is
	skipped on its own.
	"""
	offsets = []
	for minutes, seconds, fraction in TIME_TAG_RE.findall(tags):
		try:
			offset = (int(minutes) * 60 + int(seconds)) * 1000 + int(fraction[:2]) * 10
		except ValueError:
			continue
		offsets.append(offset)
	return offsets


def parse_line(line):
	"""Expand one source line into its Lines (empty list when untimed)"""
	match = TIMED_LINE_RE.match(line)
	if not match:
		return []
	text = html.unescape(match.group(2)).strip()
	return [Line(offset, text) for offset in parse_time_tags(match.group(1))]


def _iter_source_lines(source):
	if isinstance(source, str):
		return iter(source.split("\n"))
	return iter(source)


def parse(source):
	"""Parse LRC text (a str or a readable text stream) into a Timeline.

	Malformed content only yields fewer lines. A stream that fails while
	being read raises ParseError.
	"""
	lines = []
	skipped = 0
	try:
		for raw_line in _iter_source_lines(source):
			raw_line = raw_line.rstrip("\n")
			if raw_line.endswith("\r"):
				raw_line = raw_line[:-1]
			parsed = parse_line(raw_line)
			if not parsed:
				skipped += 1
			lines.extend(parsed)
	except (OSError, UnicodeDecodeError) as e:
		raise ParseError(f"Failed to read lyrics: {e}") from e

	lines.sort(key=attrgetter("timestamp"))
	LOGGER.log_trace(f"Parsed {len(lines)} timed lines ({skipped} source lines skipped)")
	return Timeline(lines)


class Timeline:
	"""Time-sorted lyric lines with a cursor for sequential lookups.

	The cursor makes forward-moving queries O(1); it is not safe to share
	one instance between concurrent pollers. Use view() to get an
	independent cursor over the same lines.
	"""

	def __init__(self, lines=()):
		self._lines = tuple(sorted(lines, key=attrgetter("timestamp")))
		self._timestamps = [line.timestamp for line in self._lines]
		self._last_index = -1

	@classmethod
	def _from_sorted(cls, lines, timestamps):
		timeline = cls.__new__(cls)
		timeline._lines = lines
		timeline._timestamps = timestamps
		timeline._last_index = -1
		return timeline

	@property
	def lines(self):
		return self._lines

	def __len__(self):
		return len(self._lines)

	def __iter__(self):
		return iter(self._lines)

	def __bool__(self):
		return bool(self._lines)

	def __repr__(self):
		return f"<Timeline lines={len(self._lines)}>"

	def view(self):
		"""Same lines, private cursor"""
		return Timeline._from_sorted(self._lines, self._timestamps)

	def reset(self):
		self._last_index = -1

	def line(self, position):
		"""Return the line active at `position` (ms), or EMPTY_LINE before the first one"""
		lines = self._lines
		n = len(lines)
		last = self._last_index
		if 0 <= last < n:
			low = lines[last]
			high = lines[min(last + 1, n - 1)]
			if low.timestamp <= position < high.timestamp:
				return low

		i = bisect.bisect_right(self._timestamps, position)
		if i == 0:
			self._last_index = 0
			return EMPTY_LINE
		self._last_index = i - 1
		return lines[i - 1]
