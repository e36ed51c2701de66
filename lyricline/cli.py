import argparse
import asyncio
import curses
import sys

from . import __version__
from .app import LyricsApp
from .config import ConfigError, ConfigManager
from .display import TerminalDisplay
from .logger import LOGGER
from .player import PlayerWatcher
from .resolver import LyricsResolver


def parse_args(argv=None):
	parser = argparse.ArgumentParser(description="lyricline - synced lyrics for the playing track")
	parser.add_argument("-c", "--config", help="Path to configuration file")
	parser.add_argument("-d", "--default", action="store_true", help="Use default settings without loading a config file")
	parser.add_argument("-p", "--player", choices=["cmus", "mpd", "playerctl"], help="Specify which player you want to load only")
	parser.add_argument("--version", action="version", version=__version__)
	return parser.parse_args(argv)


async def main_async(stdscr, config_manager):
	display = TerminalDisplay(
		stdscr,
		alignment=config_manager.ALIGNMENT,
		show_name=config_manager.DISPLAY_NAME
	)
	watcher = PlayerWatcher(config_manager)
	resolver = LyricsResolver.from_config(config_manager)
	app = LyricsApp.from_config(config_manager, resolver, watcher, display)
	await app.run()


def main(argv=None):
	args = parse_args(argv)
	try:
		config_manager = ConfigManager(
			config_path=args.config,
			use_default=args.default,
			player_override=args.player
		)
	except ConfigError as e:
		print(e, file=sys.stderr)
		return 2

	LOGGER.configure(config_manager)
	LOGGER.log_info(f"lyricline {__version__} starting")

	try:
		curses.wrapper(lambda stdscr: asyncio.run(main_async(stdscr, config_manager)))
	except KeyboardInterrupt:
		print("Exited by user (Ctrl+C).")
	return 0
