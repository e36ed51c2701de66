# ================
#  LOGGING SYSTEM
# ================
import os
import sys
import time
from datetime import datetime

LOG_LEVELS = {
	"FATAL": 5,
	"ERROR": 4,
	"WARN": 3,
	"INFO": 2,
	"DEBUG": 1,
	"TRACE": 0
}


class Logger:
	"""Handle application logging

	Writes nothing until configure() has been given a log directory.
	"""

	def __init__(self):
		self.LOG_DIR = None
		self.LOG_FILE = "application.log"
		self.DEBUG_LOG = "debug.log"
		self.LOG_LEVEL = "FATAL"
		self.MAX_LOG_COUNT = 100
		self.MAX_DEBUG_COUNT = 100
		self.ENABLE_DEBUG_LOGGING = False

	def configure(self, config_manager):
		self.LOG_DIR = config_manager.LOG_DIR
		self.LOG_FILE = config_manager.LOG_FILE
		self.DEBUG_LOG = config_manager.DEBUG_LOG
		self.LOG_LEVEL = config_manager.LOG_LEVEL
		self.MAX_LOG_COUNT = config_manager.MAX_LOG_COUNT
		self.MAX_DEBUG_COUNT = config_manager.MAX_DEBUG_COUNT
		self.ENABLE_DEBUG_LOGGING = config_manager.ENABLE_DEBUG_LOGGING

	def _trim(self, log_path, max_lines):
		"""Keep only the last `max_lines` entries of a log file"""
		if not os.path.exists(log_path):
			return

		try:
			with open(log_path, "r+", encoding="utf-8") as f:
				lines = f.readlines()
				if len(lines) > max_lines:
					keep = lines[-max_lines:]
					f.seek(0)
					f.truncate()
					f.writelines(keep)
		except OSError as e:
			print(f"Log cleanup failed: {str(e)}", file=sys.stderr)

	def clean_debug_log(self):
		self._trim(os.path.join(self.LOG_DIR, self.DEBUG_LOG), self.MAX_DEBUG_COUNT)

	def clean_log(self):
		self._trim(os.path.join(self.LOG_DIR, self.LOG_FILE), self.MAX_LOG_COUNT)

	def log_message(self, level: str, message: str):
		"""Unified logging function with level-based filtering and rotation"""
		if not self.LOG_DIR:
			return

		main_log = os.path.join(self.LOG_DIR, self.LOG_FILE)
		debug_log = os.path.join(self.LOG_DIR, self.DEBUG_LOG)
		configured_level = LOG_LEVELS.get(self.LOG_LEVEL.upper(), 2)
		message_level = LOG_LEVELS.get(level.upper(), 2)

		try:
			os.makedirs(self.LOG_DIR, exist_ok=True)
			timestamp = f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}.{int(time.time() * 1000000) % 1000000:06d}"
			entry = f"{timestamp} | {level.upper()} | {message}\n"

			# Debug log takes everything at DEBUG and below
			if self.ENABLE_DEBUG_LOGGING and message_level <= LOG_LEVELS["DEBUG"]:
				with open(debug_log, "a", encoding="utf-8") as f:
					f.write(entry)
				self.clean_debug_log()

			if message_level >= configured_level:
				with open(main_log, "a", encoding="utf-8") as f:
					f.write(entry)
				if os.path.getsize(main_log) > self.MAX_LOG_COUNT * 1024:
					self.clean_log()

		except OSError as e:
			sys.stderr.write(f"Logging failed: {str(e)}\n")

	# Specific level helpers
	def log_fatal(self, message: str):
		self.log_message("FATAL", message)

	def log_error(self, message: str):
		self.log_message("ERROR", message)

	def log_warn(self, message: str):
		self.log_message("WARN", message)

	def log_info(self, message: str):
		self.log_message("INFO", message)

	def log_debug(self, message: str):
		self.log_message("DEBUG", message)

	def log_trace(self, message: str):
		self.log_message("TRACE", message)


LOGGER = Logger()
