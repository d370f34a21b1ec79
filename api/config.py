from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "PHOTO_FORENSICS_"

APP_NAME = "Photo Forensics Tool"
APP_VERSION = "1.0.0"

# Defaults used when the matching PHOTO_FORENSICS_* variable is unset
DEFAULTS: Dict[str, Any] = {
	"EXIFTOOL_PATH": None,  # None = look up "exiftool" on PATH
	"HOST": "127.0.0.1",
	"PORT": 8765,
	"LOG_LEVEL": "INFO",
	"WINDOW_WIDTH": 1200,
	"WINDOW_HEIGHT": 800,
	"DEBUG": False,
}


@dataclass(frozen=True)
class Settings:
	exiftool_path: Optional[str]
	host: str
	port: int
	log_level: str
	window_width: int
	window_height: int
	debug: bool

	@property
	def base_url(self) -> str:
		return f"http://{self.host}:{self.port}"


def _int_setting(env: Mapping[str, str], key: str) -> int:
	raw = env.get(ENV_PREFIX + key)
	if raw is None or not raw.strip():
		return int(DEFAULTS[key])
	try:
		return int(raw)
	except ValueError:
		logger.warning("Invalid integer for %s%s=%r, using %s", ENV_PREFIX, key, raw, DEFAULTS[key])
		return int(DEFAULTS[key])


def _bool_setting(env: Mapping[str, str], key: str) -> bool:
	raw = env.get(ENV_PREFIX + key)
	if raw is None:
		return bool(DEFAULTS[key])
	return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
	env = os.environ if env is None else env
	exiftool_path = env.get(ENV_PREFIX + "EXIFTOOL_PATH") or DEFAULTS["EXIFTOOL_PATH"]
	return Settings(
		exiftool_path=exiftool_path,
		host=env.get(ENV_PREFIX + "HOST") or DEFAULTS["HOST"],
		port=_int_setting(env, "PORT"),
		log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or DEFAULTS["LOG_LEVEL"]).upper(),
		window_width=_int_setting(env, "WINDOW_WIDTH"),
		window_height=_int_setting(env, "WINDOW_HEIGHT"),
		debug=_bool_setting(env, "DEBUG"),
	)
