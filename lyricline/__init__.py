"""Synchronized lyrics for whatever your music player is playing"""

__version__ = "1.0.0"

from .cache import LookupCache, NotFound, Resolved
from .errors import (
	CancellationError,
	LyricsError,
	NotFoundError,
	ParseError,
	TransportError,
	ValidationError,
)
from .lrc import EMPTY_LINE, Line, Timeline, parse
from .player import NowPlaying, PlaybackState, TrackIdentity
from .resolver import LyricsResolver
