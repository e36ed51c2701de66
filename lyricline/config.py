# ==============
#  CONFIGURATION
# ==============
import copy
import json
import os

import appdirs

APP_NAME = "lyricline"
CONFIG_FILES = ["config.json"]

DEFAULT_CONFIG = {
	"global": {
		"logs_dir": appdirs.user_log_dir(APP_NAME),
		"log_file": "application.log",
		"log_level": {"env": "LYRICLINE_LOG_LEVEL", "default": "FATAL"},
		"debug_log": "debug.log",
		"max_debug_count": 100,
		"max_log_count": 100,
		"enable_debug": {"env": "DEBUG", "default": "0"}
	},
	"lyrics": {
		"endpoint": {"env": "LYRICLINE_ENDPOINT", "default": "https://lyrics-api.lujjjh.com/"},
		"cache_size": 32,
		"request_timeout_sec": 15,
		"resolve_timeout_sec": 10,
		"user_agent": "lyricline/1.0.0"
	},
	"player": {
		"enable_cmus": True,
		"enable_mpd": True,
		"enable_playerctl": True,
		"poll_interval_ms": 1000,
		"jump_threshold_ms": 1500,
		"mpd": {
			"host": {"env": "MPD_HOST", "default": "localhost"},
			"port": {"env": "MPD_PORT", "default": 6600},
			"password": {"env": "MPD_PASSWORD", "default": None},
			"timeout": 10
		}
	},
	"sync": {
		"poll_interval_ms": 100,
		"display_bias_ms": 350
	},
	"ui": {
		"alignment": "center",
		"name": True
	}
}


def deep_merge_dicts(base, updates):
	for key, value in updates.items():
		if key in base and isinstance(base[key], dict) and isinstance(value, dict):
			deep_merge_dicts(base[key], value)
		else:
			base[key] = value


def resolve_value(item):
	"""Resolve {"env": ..., "default": ...} into actual value"""
	if isinstance(item, dict) and "env" in item and "default" in item:
		return os.environ.get(item["env"], item["default"])
	return item


class ConfigError(ValueError):
	pass


class ConfigManager:
	def __init__(self, config_path=None, use_default=False, player_override=None):
		self.user_config_dir = appdirs.user_config_dir(APP_NAME)
		self.use_default = use_default
		self.config_path = config_path
		self.player_override = player_override

		self.config = self.load_config()
		self.setup_logging()
		self.setup_lyrics()
		self.setup_player()
		self.setup_sync()
		self.setup_ui()

	@staticmethod
	def normalize_path(path: str) -> str:
		path = os.path.expanduser(path)
		if os.path.isabs(path):
			return os.path.normpath(path)
		return os.path.normpath(os.path.abspath(path))

	def config_paths(self):
		if self.config_path:
			return [self.config_path]
		return [os.path.join(self.user_config_dir, f) for f in CONFIG_FILES]

	def load_config(self):
		merged_config = copy.deepcopy(DEFAULT_CONFIG)

		if not self.use_default:
			for path in self.config_paths():
				path = os.path.expanduser(path)
				if not os.path.exists(path):
					continue
				try:
					with open(path, "r", encoding="utf-8") as f:
						file_config = json.load(f)
				except (OSError, json.JSONDecodeError) as e:
					raise ConfigError(f"Error loading config from {path}: {e}") from e
				if self.player_override:
					file_config.pop("player", None)
				deep_merge_dicts(merged_config, file_config)
				break

		merged_config["global"]["enable_debug"] = str(resolve_value(merged_config["global"]["enable_debug"])) == "1"
		return merged_config

	def setup_logging(self):
		settings = self.config["global"]
		self.LOG_DIR = self.normalize_path(settings["logs_dir"])
		self.LOG_FILE = settings["log_file"]
		self.LOG_LEVEL = str(resolve_value(settings["log_level"])).upper()
		self.DEBUG_LOG = settings["debug_log"]
		self.MAX_DEBUG_COUNT = settings["max_debug_count"]
		self.MAX_LOG_COUNT = settings["max_log_count"]
		self.ENABLE_DEBUG_LOGGING = settings["enable_debug"]

	def setup_lyrics(self):
		settings = self.config["lyrics"]
		self.LYRICS_ENDPOINT = resolve_value(settings["endpoint"])
		self.CACHE_SIZE = int(settings["cache_size"])
		self.REQUEST_TIMEOUT = float(settings["request_timeout_sec"])
		self.RESOLVE_TIMEOUT = float(settings["resolve_timeout_sec"])
		self.USER_AGENT = settings["user_agent"]
		if self.CACHE_SIZE <= 0:
			raise ConfigError("lyrics.cache_size must be positive")

	def setup_player(self):
		settings = self.config["player"]
		self.MPD_HOST = resolve_value(settings["mpd"]["host"])
		self.MPD_PORT = int(resolve_value(settings["mpd"]["port"]))
		self.MPD_PASSWORD = resolve_value(settings["mpd"]["password"])
		self.MPD_TIMEOUT = settings["mpd"]["timeout"]
		self.PLAYER_POLL_INTERVAL = settings["poll_interval_ms"] / 1000.0
		self.JUMP_THRESHOLD_MS = settings["jump_threshold_ms"]

		if self.player_override:
			self.ENABLE_CMUS = self.player_override == "cmus"
			self.ENABLE_MPD = self.player_override == "mpd"
			self.ENABLE_PLAYERCTL = self.player_override == "playerctl"
		else:
			self.ENABLE_CMUS = settings["enable_cmus"]
			self.ENABLE_MPD = settings["enable_mpd"]
			self.ENABLE_PLAYERCTL = settings["enable_playerctl"]

	def setup_sync(self):
		settings = self.config["sync"]
		self.SYNC_INTERVAL = settings["poll_interval_ms"] / 1000.0
		self.DISPLAY_BIAS_MS = settings["display_bias_ms"]

	def setup_ui(self):
		self.ALIGNMENT = self.config["ui"]["alignment"]
		self.DISPLAY_NAME = self.config["ui"]["name"]
		if self.ALIGNMENT not in ("left", "center", "right"):
			raise ConfigError(f"Unknown ui.alignment: {self.ALIGNMENT}")
