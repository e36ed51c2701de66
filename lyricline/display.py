# ==============
#  UI RENDERING
# ==============
import curses

from wcwidth import wcswidth, wcwidth

from .logger import LOGGER


def display_width(text):
	width = wcswidth(text)
	# Unprintable characters make wcswidth give up; count them as one cell
	if width < 0:
		width = sum(max(wcwidth(ch), 1) for ch in text)
	return width


def truncate_to_width(text, width):
	"""Cut `text` so it occupies at most `width` terminal cells"""
	if display_width(text) <= width:
		return text
	out = []
	used = 0
	for ch in text:
		w = max(wcwidth(ch), 0)
		if used + w > width:
			break
		out.append(ch)
		used += w
	return "".join(out)


def align_column(text, width, alignment="center"):
	"""Column at which `text` starts for the given alignment"""
	text_width = display_width(text)
	if alignment == "left":
		return 0
	if alignment == "right":
		return max(0, width - text_width - 1)
	return max(0, (width - text_width) // 2)


class TerminalDisplay:
	"""Single-line lyrics display drawn with curses"""

	def __init__(self, stdscr, alignment="center", show_name=True):
		self.stdscr = stdscr
		self.alignment = alignment
		self.show_name = show_name
		self.lyrics = ""
		self.status = ""
		curses.curs_set(0)
		stdscr.nodelay(True)

	def set_lyrics(self, text):
		self.lyrics = text
		self.redraw()

	def set_status(self, text):
		if not self.show_name:
			text = ""
		if text != self.status:
			self.status = text
			self.redraw()

	def redraw(self):
		height, width = self.stdscr.getmaxyx()
		if height <= 0 or width <= 1:
			return
		self.stdscr.erase()
		try:
			line = truncate_to_width(self.lyrics, width - 1)
			self.stdscr.addstr(height // 2, align_column(line, width, self.alignment), line, curses.A_BOLD)
			if self.status and height > 1:
				status = truncate_to_width(self.status, width - 1)
				self.stdscr.addstr(height - 1, 0, status, curses.A_DIM)
		except curses.error as e:
			# Writing the bottom-right cell raises even though it draws
			LOGGER.log_trace(f"curses draw error: {e}")
		self.stdscr.refresh()
