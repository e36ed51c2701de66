"""Exceptions raised while resolving lyrics for a track"""


class LyricsError(Exception):
	"""Base class for every lyrics resolution failure"""


class ValidationError(LyricsError):
	"""Track is missing the title or artist needed to query a source"""


class NotFoundError(LyricsError):
	"""The lyrics source has no lyrics for the track"""


class TransportError(LyricsError):
	"""Network failure or unexpected HTTP status"""

	def __init__(self, message, status=None):
		super().__init__(message)
		self.status = status


class ParseError(LyricsError):
	"""The response body could not be read"""


class CancellationError(LyricsError):
	"""The caller's deadline expired before a result arrived"""
