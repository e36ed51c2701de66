# ================
#  MAIN APPLICATION
# ================
import asyncio
import time

from .errors import LyricsError, NotFoundError, ValidationError
from .logger import LOGGER
from .lrc import EMPTY_LINE


class LyricsApp:
	"""
	Keeps the display in step with the player.

	watch_now_playing() follows player snapshots and resolves lyrics when the
	track changes; sync_lyrics() ticks on a fixed cadence and pushes the
	active line to the display when it changes. The two only share the
	`now_playing` and `timeline` references, which are rebound whole.
	"""

	def __init__(
			self,
			resolver,
			watcher,
			display,
			resolve_timeout=10,
			sync_interval=0.1,
			display_bias_ms=350,
			clock=time.perf_counter
	):
		self.resolver = resolver
		self.watcher = watcher
		self.display = display
		self.resolve_timeout = resolve_timeout
		self.sync_interval = sync_interval
		self.display_bias_ms = display_bias_ms
		self.clock = clock

		self.now_playing = None
		self.timeline = None
		self.current_line = EMPTY_LINE
		self._seq = 0
		self._needs_retry = False
		self._tasks = set()

	@classmethod
	def from_config(cls, config_manager, resolver, watcher, display):
		return cls(
			resolver,
			watcher,
			display,
			resolve_timeout=config_manager.RESOLVE_TIMEOUT,
			sync_interval=config_manager.SYNC_INTERVAL,
			display_bias_ms=config_manager.DISPLAY_BIAS_MS,
			clock=watcher.clock
		)

	def _show_status(self, snapshot):
		set_status = getattr(self.display, "set_status", None)
		if set_status is None:
			return
		if snapshot is None:
			set_status("")
		else:
			set_status(f"{snapshot.artist} - {snapshot.title}")

	async def update_now_playing(self, snapshot):
		"""Publish a snapshot and resolve its lyrics if the track changed"""
		previous = self.now_playing
		self.now_playing = snapshot
		self._show_status(snapshot)

		if snapshot is None:
			self._seq += 1
			self.timeline = None
			return

		same_track = previous is not None and previous.track == snapshot.track
		if same_track and not self._needs_retry:
			return

		self._seq += 1
		seq = self._seq
		if not same_track:
			self.timeline = None

		try:
			timeline = await self.resolver.resolve(snapshot.track, timeout=self.resolve_timeout)
		except (ValidationError, NotFoundError) as e:
			LOGGER.log_debug(f"No lyrics: {e}")
			timeline, needs_retry = None, False
		except LyricsError as e:
			LOGGER.log_info(f"Lyrics lookup failed ({type(e).__name__}): {e}")
			timeline, needs_retry = None, True
		else:
			needs_retry = False

		if seq != self._seq:
			LOGGER.log_trace(f"Discarding stale lyrics for {snapshot.artist} - {snapshot.title}")
			return
		self._needs_retry = needs_retry
		# Private cursor; the cached instance may be polled by someone else
		self.timeline = timeline.view() if timeline is not None else None

	def tick(self, now=None):
		"""Push the active line to the display if it changed; True when it did"""
		snapshot = self.now_playing
		timeline = self.timeline

		line = EMPTY_LINE
		if snapshot is not None and snapshot.is_playing and timeline is not None:
			if now is None:
				now = self.clock()
			line = timeline.line(snapshot.position_ms(now) + self.display_bias_ms)

		if line == self.current_line:
			return False
		self.current_line = line
		self.display.set_lyrics(line.text)
		return True

	def _spawn(self, coro):
		task = asyncio.ensure_future(coro)
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	async def watch_now_playing(self):
		async for snapshot in self.watcher.watch():
			self._spawn(self.update_now_playing(snapshot))

	async def sync_lyrics(self):
		while True:
			self.tick()
			await asyncio.sleep(self.sync_interval)

	async def run(self):
		LOGGER.log_info("Starting lyrics sync")
		try:
			await asyncio.gather(self.watch_now_playing(), self.sync_lyrics())
		finally:
			for task in list(self._tasks):
				task.cancel()
			await self.resolver.close()
