# ==============
#  PLAYER DETECTION
# ==============
import asyncio
import subprocess
import time
from dataclasses import dataclass
from enum import Enum

from mpd import MPDClient, MPDError

from .logger import LOGGER


class PlaybackState(Enum):
	PLAYING = "playing"
	PAUSED = "paused"
	STOPPED = "stopped"

	@classmethod
	def from_status(cls, status):
		try:
			return cls((status or "").strip().lower())
		except ValueError:
			return cls.STOPPED


@dataclass(frozen=True)
class TrackIdentity:
	title: str
	artist: str
	album: str = ""
	external_id: int = 0

	def key(self):
		"""Exact cache key; fields are kept apart structurally so no two tracks collide"""
		return (self.title, self.artist, self.album, self.external_id)


@dataclass(frozen=True)
class NowPlaying:
	title: str
	artist: str
	album: str = ""
	external_id: int = 0
	state: PlaybackState = PlaybackState.STOPPED
	elapsed_ms: int = 0
	updated_at: float = 0.0  # time.perf_counter() when elapsed_ms was sampled
	player: str = ""

	@property
	def track(self):
		return TrackIdentity(self.title, self.artist, self.album, self.external_id)

	@property
	def is_playing(self):
		return self.state is PlaybackState.PLAYING

	def position_ms(self, now=None):
		"""Estimated playback position; free-runs from the last sample while playing"""
		if not self.is_playing:
			return self.elapsed_ms
		if now is None:
			now = time.perf_counter()
		return self.elapsed_ms + int((now - self.updated_at) * 1000)


def get_cmus_info(clock=time.perf_counter):
	"""Get current playback info from cmus"""
	try:
		output = subprocess.run(
			['cmus-remote', '-Q'],
			capture_output=True,
			text=True,
			check=True,
			timeout=1
		).stdout.splitlines()
	except (OSError, subprocess.SubprocessError):
		return None
	LOGGER.log_trace("cmus-remote polling...")
	return parse_cmus_status(output, clock())


def parse_cmus_status(output, sampled_at):
	data = {"file": None, "status": "stopped", "position": 0, "tags": {}}

	for line in output:
		if line.startswith("file "):
			data["file"] = line[5:].strip()
		elif line.startswith("status "):
			data["status"] = line[7:].strip()
		elif line.startswith("position "):
			data["position"] = int(line[9:].strip())
		elif line.startswith("tag "):
			parts = line.split(" ", 2)
			if len(parts) == 3:
				data["tags"][parts[1]] = parts[2].strip()

	if data["file"] is None:
		return None

	tags = data["tags"]
	return NowPlaying(
		title=tags.get("title", ""),
		artist=tags.get("artist", ""),
		album=tags.get("album", ""),
		state=PlaybackState.from_status(data["status"]),
		elapsed_ms=data["position"] * 1000,
		updated_at=sampled_at,
		player="cmus"
	)


def get_mpd_info(host, port, password=None, timeout=10, clock=time.perf_counter):
	"""Get current playback info from MPD, handling password authentication."""
	client = MPDClient()
	client.timeout = timeout

	try:
		client.connect(host, port)
	except (OSError, MPDError):
		return None

	try:
		LOGGER.log_trace("mpd polling...")
		if password:
			client.password(password)
		status = client.status()
		current_song = client.currentsong()
		sampled_at = clock()
	finally:
		client.disconnect()

	if not current_song:
		return None

	def as_text(value):
		# Multi-valued tags come back as lists
		if isinstance(value, list):
			return ", ".join(value)
		return value or ""

	return NowPlaying(
		title=as_text(current_song.get("title")),
		artist=as_text(current_song.get("artist")),
		album=as_text(current_song.get("album")),
		state=PlaybackState.from_status({"play": "playing", "pause": "paused"}.get(status.get("state"))),
		elapsed_ms=int(float(status.get("elapsed", 0)) * 1000),
		updated_at=sampled_at,
		player="mpd"
	)


PLAYERCTL_FORMAT = '"{{playerName}}","{{artist}}","{{title}}","{{album}}","{{position}}","{{status}}"'


def get_playerctl_info(clock=time.perf_counter):
	"""Get current playback info from any player via playerctl."""
	try:
		result = subprocess.run(
			["playerctl", "metadata", "--format", PLAYERCTL_FORMAT],
			capture_output=True, text=True, timeout=1
		)
	except (OSError, subprocess.SubprocessError):
		return None
	LOGGER.log_trace("playerctl polling...")
	return parse_playerctl_output(result.stdout, clock())


def parse_playerctl_output(output, sampled_at):
	output = output.strip()
	if not output or "No players found" in output:
		return None

	# Remove surrounding quotes and split by "," safely
	if output.startswith('"') and output.endswith('"'):
		output = output[1:-1]

	fields = output.split('","')
	if len(fields) != 6:
		return None

	player_name, artist, title, album, position, status = fields
	if not title:
		return None

	# Microseconds
	try:
		elapsed_ms = int(float(position) / 1000) if position else 0
	except ValueError:
		elapsed_ms = 0

	return NowPlaying(
		title=title,
		artist=artist,
		album=album,
		state=PlaybackState.from_status(status),
		elapsed_ms=max(0, elapsed_ms),
		updated_at=sampled_at,
		player=player_name or "playerctl"
	)


class PlayerWatcher:
	"""Poll the enabled players and stream now-playing snapshots"""

	def __init__(self, config_manager, clock=time.perf_counter):
		self.clock = clock
		self.interval = config_manager.PLAYER_POLL_INTERVAL
		self.jump_threshold_ms = config_manager.JUMP_THRESHOLD_MS
		self.sources = []
		if config_manager.ENABLE_CMUS:
			self.sources.append(("cmus", lambda: get_cmus_info(clock=self.clock)))
		if config_manager.ENABLE_MPD:
			self.sources.append(("mpd", lambda: get_mpd_info(
				config_manager.MPD_HOST,
				config_manager.MPD_PORT,
				config_manager.MPD_PASSWORD,
				config_manager.MPD_TIMEOUT,
				clock=self.clock
			)))
		if config_manager.ENABLE_PLAYERCTL:
			self.sources.append(("playerctl", lambda: get_playerctl_info(clock=self.clock)))

	def poll(self):
		"""Return the first active player's snapshot, or None"""
		for name, probe in self.sources:
			try:
				info = probe()
			except (OSError, ValueError, MPDError, subprocess.SubprocessError) as e:
				LOGGER.log_debug(f"{name} detection failed: {str(e)}")
				continue
			if info is not None:
				return info
		LOGGER.log_trace("No active music player detected")
		return None

	def changed(self, previous, current):
		"""True when `current` carries news the position estimate can't predict"""
		if previous is None or current is None:
			return previous is not current
		if previous.track != current.track or previous.state != current.state:
			return True
		expected = previous.position_ms(current.updated_at)
		return abs(current.elapsed_ms - expected) > self.jump_threshold_ms

	async def watch(self):
		"""Yield a snapshot now, then again whenever the playback state changes"""
		loop = asyncio.get_running_loop()
		previous = await loop.run_in_executor(None, self.poll)
		yield previous

		while True:
			await asyncio.sleep(self.interval)
			current = await loop.run_in_executor(None, self.poll)
			if self.changed(previous, current):
				LOGGER.log_debug(f"Playback changed: {current}")
				previous = current
				yield current
