import io

import pytest

from lyricline import lrc
from lyricline.errors import ParseError
from lyricline.lrc import EMPTY_LINE, Line, Timeline


def test_parse_example(sample_lrc):
	timeline = lrc.parse(sample_lrc)

	assert timeline.lines == (
		Line(12500, "Hello world"),
		Line(45000, "Hello world"),
		Line(60000, "Goodbye"),
	)
	assert timeline.line(0) == EMPTY_LINE
	assert timeline.line(13000).text == "Hello world"
	assert timeline.line(50000).text == "Hello world"
	assert timeline.line(61000).text == "Goodbye"


def test_each_tag_becomes_a_line():
	timeline = lrc.parse("[00:01.00][00:02.00][00:03.00]  la la  ")
	assert [line.timestamp for line in timeline] == [1000, 2000, 3000]
	assert {line.text for line in timeline} == {"la la"}


def test_fraction_truncated_to_hundredths():
	timeline = lrc.parse("[00:01.239]a\n[00:02.999]b")
	assert [line.timestamp for line in timeline] == [1230, 2990]


def test_long_minutes_and_seconds():
	assert lrc.parse_time_tags("[100:05.00]") == [6005000]
	assert lrc.parse_time_tags("[00:75.10]") == [75100]


def test_untimed_lines_are_skipped():
	text = "\n".join([
		"[ar:Some Artist]",
		"[ti:Some Title]",
		"plain text",
		"[0:01.00]single digit minutes",
		"[00:01]no fraction",
		"[00:01.5]one digit fraction",
		"",
		"[00:02.00]kept",
	])
	timeline = lrc.parse(text)
	assert timeline.lines == (Line(2000, "kept"),)


def test_tags_must_lead_the_line():
	assert lrc.parse_line("intro [00:01.00]late tag") == []
	# A trailing non-time tag stays part of the text
	assert lrc.parse_line("[00:01.00][xx]text") == [Line(1000, "[xx]text")]


def test_html_entities_decoded_then_stripped():
	timeline = lrc.parse("[00:01.00] Rock &amp; Roll &#39;n&#39; &lt;3 &nbsp;")
	assert timeline.lines[0].text == "Rock & Roll 'n' <3"


def test_crlf_tolerated():
	timeline = lrc.parse("[00:01.00]one\r\n[00:02.00]two\r\n")
	assert [line.text for line in timeline] == ["one", "two"]


def test_unsorted_input_is_stably_sorted():
	timeline = lrc.parse("[00:05.00]late\n[00:01.00]first\n[00:05.00]later tie\n[00:03.00]middle")
	assert [line.text for line in timeline] == ["first", "middle", "late", "later tie"]


def test_empty_text_lines_are_kept():
	timeline = lrc.parse("[00:01.00]words\n[00:04.00]\n")
	assert timeline.lines[1] == Line(4000, "")


def test_parse_stream():
	timeline = lrc.parse(io.StringIO("[00:01.00]one\n[00:02.00]two\n"))
	assert len(timeline) == 2


def test_parse_unreadable_stream_raises():
	class BrokenStream:
		def __iter__(self):
			yield "[00:01.00]one\n"
			raise OSError("connection reset")

	with pytest.raises(ParseError):
		lrc.parse(BrokenStream())


def test_garbage_yields_empty_timeline():
	timeline = lrc.parse("not lyrics at all\n[[[]]]\n")
	assert not timeline
	assert timeline.line(10000) == EMPTY_LINE


class TestTimelineLookup:
	def make(self):
		return Timeline([Line(1000, "a"), Line(2000, "b"), Line(3000, "c")])

	def test_before_first_line(self):
		timeline = self.make()
		assert timeline.line(0) == EMPTY_LINE
		assert timeline.line(999) == EMPTY_LINE

	def test_line_active_from_its_timestamp(self):
		timeline = self.make()
		for timestamp, text in ((1000, "a"), (2000, "b"), (3000, "c")):
			assert timeline.line(timestamp).text == text
			assert timeline.line(timestamp + 1).text == text

	def test_last_line_stays_active(self):
		timeline = self.make()
		assert timeline.line(3000).text == "c"
		assert timeline.line(10 ** 9).text == "c"

	def test_sequential_playback(self):
		timeline = self.make()
		seen = [timeline.line(position).text for position in range(0, 4000, 100)]
		assert seen == [""] * 10 + ["a"] * 10 + ["b"] * 10 + ["c"] * 10

	def test_seek_backwards(self):
		timeline = self.make()
		assert timeline.line(2500).text == "b"
		assert timeline.line(1500).text == "a"
		assert timeline.line(500) == EMPTY_LINE
		assert timeline.line(2500).text == "b"

	def test_repeat_query_independent_of_cursor(self):
		timeline = self.make()
		positions = [2500, 1000, 3500, 0, 1999, 2000]
		first = [timeline.line(p) for p in positions]
		for position, expected in zip(positions, first):
			timeline.line(3500)
			assert timeline.line(position) == expected
			timeline.reset()
			assert timeline.line(position) == expected

	def test_duplicate_timestamps_resolve_to_last(self):
		timeline = Timeline([Line(1000, "x"), Line(1000, "y"), Line(2000, "z")])
		assert timeline.line(1500).text == "y"
		assert timeline.line(1500).text == "y"

	def test_view_has_private_cursor(self):
		timeline = self.make()
		view = timeline.view()
		assert view.lines is timeline.lines
		assert view.line(2500).text == "b"
		assert timeline.line(500) == EMPTY_LINE
		assert view.line(2600).text == "b"

	def test_empty_timeline(self):
		timeline = Timeline()
		assert len(timeline) == 0
		assert timeline.line(0) == EMPTY_LINE
		assert timeline.line(5000) == EMPTY_LINE
