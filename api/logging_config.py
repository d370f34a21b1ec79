"""Logging setup shared by the host API and the desktop launcher."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
	"""Configure the root logger once; later calls only adjust the level."""
	root = logging.getLogger()
	numeric = getattr(logging, level.upper(), logging.INFO)
	root.setLevel(numeric)
	if not any(getattr(h, "_photo_forensics", False) for h in root.handlers):
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter(LOG_FORMAT))
		handler._photo_forensics = True  # type: ignore[attr-defined]
		root.addHandler(handler)
	# uvicorn installs its own handlers; keep its level in step with ours
	for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
		logging.getLogger(name).setLevel(numeric)
