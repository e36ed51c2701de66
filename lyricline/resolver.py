"""
Resolve a track to its lyrics Timeline.

Concurrent resolve() calls for the same track share one in-flight lookup.
Lookups consult the LookupCache first; on a miss the lyrics API is queried
with the track's name and artist. 200 responses are parsed and cached, 404
is cached as NotFound, anything else is raised without touching the cache.
"""

import asyncio

import aiohttp

from . import lrc
from .cache import DEFAULT_CAPACITY, LookupCache, NotFound, Resolved
from .errors import CancellationError, NotFoundError, ParseError, TransportError, ValidationError
from .logger import LOGGER

DEFAULT_ENDPOINT = "https://lyrics-api.lujjjh.com/"
DEFAULT_REQUEST_TIMEOUT = 15


class LyricsResolver:
	def __init__(
			self,
			endpoint=DEFAULT_ENDPOINT,
			cache=None,
			session=None,
			request_timeout=DEFAULT_REQUEST_TIMEOUT,
			user_agent=None
	):
		self.endpoint = endpoint
		self.cache = cache if cache is not None else LookupCache(DEFAULT_CAPACITY)
		self.request_timeout = request_timeout
		self.user_agent = user_agent
		self._session = session
		self._own_session = session is None
		self._inflight = {}

	@classmethod
	def from_config(cls, config_manager, session=None):
		return cls(
			endpoint=config_manager.LYRICS_ENDPOINT,
			cache=LookupCache(config_manager.CACHE_SIZE),
			session=session,
			request_timeout=config_manager.REQUEST_TIMEOUT,
			user_agent=config_manager.USER_AGENT
		)

	async def __aenter__(self):
		return self

	async def __aexit__(self, *exc_info):
		await self.close()

	def _get_session(self):
		if self._session is None:
			headers = {"User-Agent": self.user_agent} if self.user_agent else None
			self._session = aiohttp.ClientSession(headers=headers)
		return self._session

	async def close(self):
		"""Cancel outstanding lookups and close the session we opened"""
		for task in list(self._inflight.values()):
			task.cancel()
		self._inflight.clear()
		if self._own_session and self._session is not None:
			await self._session.close()
			self._session = None

	async def resolve(self, track, timeout=None):
		"""Return the Timeline for `track`.

		Raises ValidationError, NotFoundError, TransportError, ParseError, or
		CancellationError when `timeout` seconds pass first. A caller that
		gives up leaves the shared lookup running for the other waiters.
		"""
		if not track.title or not track.artist:
			raise ValidationError("Track needs both a title and an artist")

		key = track.key()
		task = self._inflight.get(key)
		# A finished task may linger until its done callback runs
		if task is None or task.done():
			task = asyncio.ensure_future(self._lookup(key, track))
			self._inflight[key] = task
			task.add_done_callback(lambda t, key=key: self._finish(key, t))
		else:
			LOGGER.log_trace(f"Joining in-flight lookup: {track.artist} - {track.title}")

		try:
			return await asyncio.wait_for(asyncio.shield(task), timeout)
		except asyncio.TimeoutError:
			raise CancellationError(f"Gave up on lyrics for {track.artist} - {track.title} after {timeout}s") from None

	def _finish(self, key, task):
		if self._inflight.get(key) is task:
			del self._inflight[key]
		# Mark the outcome retrieved even if every waiter has left
		if not task.cancelled():
			task.exception()

	async def _lookup(self, key, track):
		entry = self.cache.get(key)
		if isinstance(entry, Resolved):
			LOGGER.log_trace(f"Lyrics cache hit: {track.artist} - {track.title}")
			return entry.timeline
		if isinstance(entry, NotFound):
			raise NotFoundError(f"No lyrics for {track.artist} - {track.title} (cached)")

		timeline = await self._fetch(track)
		if timeline is None:
			self.cache.put(key, NotFound())
			raise NotFoundError(f"No lyrics for {track.artist} - {track.title}")
		self.cache.put(key, Resolved(timeline))
		return timeline

	async def _fetch(self, track):
		"""Query the lyrics API; None means the API has no lyrics for the track"""
		params = {"name": track.title, "artist": track.artist}
		LOGGER.log_debug(f"Querying lyrics API: {track.artist} - {track.title}")
		session = self._get_session()

		try:
			async with session.get(
					self.endpoint,
					params=params,
					timeout=aiohttp.ClientTimeout(total=self.request_timeout)
			) as response:
				if response.status == 404:
					LOGGER.log_debug(f"Lyrics API has no lyrics for {track.artist} - {track.title}")
					return None
				if response.status != 200:
					raise TransportError(f"Unexpected status code: {response.status}", status=response.status)
				try:
					body = await response.text()
				except (aiohttp.ClientPayloadError, UnicodeDecodeError) as e:
					raise ParseError(f"Failed to read lyrics response: {e}") from e
		except aiohttp.ClientError as e:
			raise TransportError(f"Lyrics request failed: {e}") from e
		except asyncio.TimeoutError as e:
			raise TransportError(f"Lyrics request timed out after {self.request_timeout}s") from e

		timeline = lrc.parse(body)
		LOGGER.log_info(f"Lyrics API returned {len(timeline)} lines for {track.artist} - {track.title}")
		return timeline
