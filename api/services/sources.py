from __future__ import annotations

import logging
import re
import threading
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional, Union

import piexif
from exiftool import ExifToolHelper
from exiftool.exceptions import ExifToolExecuteError
from PIL import Image, IptcImagePlugin

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

EXIFTOOL_ARGS = ["-c", "%.6f"]
HEMISPHERE_SUFFIX = re.compile(r"\s+[NSEW]$")

# piexif tag names that exiftool reports under a different name
PIEXIF_ALIASES: Dict[str, str] = {
	"ISOSpeedRatings": "ISO",
	"DateTime": "ModifyDate",
	"DateTimeDigitized": "CreateDate",
}

# IPTC IIM datasets (record 2) that feed the location and author fields
IPTC_TAGS: Dict[tuple, str] = {
	(2, 80): "Creator",  # By-line
	(2, 90): "City",
	(2, 95): "State",  # Province/State
	(2, 101): "Country",
	(2, 116): "Copyright",  # CopyrightNotice
}


class ExifToolSource:
	"""
	Primary tag source backed by one long-lived exiftool process.

	The process is started on the first read (or an explicit start()) and must be
	stopped once when the application exits. Reads are serialized because the
	exiftool stay_open protocol handles one command at a time.
	"""

	def __init__(self, executable: Optional[str] = None) -> None:
		self.executable = executable
		self._helper: Optional[ExifToolHelper] = None
		self._lock = threading.Lock()
		self._stopped = False

	@property
	def running(self) -> bool:
		return self._helper is not None and self._helper.running

	def start(self) -> None:
		with self._lock:
			self._ensure_running()

	def _ensure_running(self) -> ExifToolHelper:
		if self._stopped:
			raise RuntimeError("exiftool worker has already been shut down")
		if self._helper is None:
			# no -G/-n: plain tag names with exiftool's readable print conversion,
			# except coordinates, which come out as decimal degrees
			self._helper = ExifToolHelper(executable=self.executable, common_args=EXIFTOOL_ARGS)
		if not self._helper.running:
			logger.info("Starting exiftool worker (%s)", self.executable or "exiftool")
			self._helper.run()
		return self._helper

	def stop(self) -> None:
		with self._lock:
			if self._stopped:
				return
			self._stopped = True
			if self._helper is not None and self._helper.running:
				logger.info("Stopping exiftool worker")
				self._helper.terminate()

	def read(self, path: PathLike) -> Dict[str, Any]:
		with self._lock:
			helper = self._ensure_running()
			try:
				results = helper.get_metadata(str(path))
			except ExifToolExecuteError as e:
				stderr = (getattr(e, "stderr", "") or "").strip()
				raise ValueError(stderr or str(e)) from e
		if not results:
			raise ValueError(f"exiftool returned no metadata for {path}")
		return _strip_hemisphere(dict(results[0]))


def _strip_hemisphere(tags: Dict[str, Any]) -> Dict[str, Any]:
	# Composite GPSLatitude/GPSLongitude end in "N"/"S"/"E"/"W"; the ref tag
	# already carries the hemisphere.
	for key in ("GPSLatitude", "GPSLongitude"):
		value = tags.get(key)
		if isinstance(value, str):
			tags[key] = HEMISPHERE_SUFFIX.sub("", value)
	return tags


def _rational_to_float(x: Any) -> Optional[float]:
	# piexif hands RATIONAL/SRATIONAL values over as (numerator, denominator)
	if isinstance(x, tuple) and len(x) == 2:
		num, den = x
		return float(num) / float(den) if den else None
	if isinstance(x, (int, float)):
		return float(x)
	return None


def _apex_to_time(apex: Optional[float]) -> Optional[float]:
	# ShutterSpeedValue: Tv = -log2(t)
	return 2.0 ** (-apex) if apex is not None else None


def _apex_to_fnumber(apex: Optional[float]) -> Optional[float]:
	# ApertureValue: Av = 2 * log2(N)
	return 2.0 ** (apex / 2.0) if apex is not None else None


def _bytes_to_str(v: Any) -> Optional[str]:
	if v is None:
		return None
	if isinstance(v, bytes):
		return v.decode("utf-8", errors="ignore").replace("\x00", "").strip()
	if isinstance(v, str):
		return v.strip()
	return str(v)


def _iso_speed(v: Any) -> Optional[int]:
	# ISOSpeedRatings is a SHORT count; cameras writing several list the used one first
	if isinstance(v, (list, tuple)):
		v = v[0] if v else None
	if isinstance(v, int):
		return v if v > 0 else None
	return None


def _dms_to_degrees(v: Any) -> Optional[float]:
	if not isinstance(v, (list, tuple)) or len(v) != 3:
		return None
	parts = [_rational_to_float(p) for p in v]
	if any(p is None for p in parts):
		return None
	d, m, s = parts
	return d + m / 60.0 + s / 3600.0


def _format_exposure(seconds: Optional[float]) -> Optional[str]:
	if seconds is None or seconds <= 0:
		return None
	if seconds >= 1:
		return f"{seconds:g}"
	return f"1/{round(1.0 / seconds)}"


def _describe(name: str, raw: Any, gps: Dict[int, Any]) -> Optional[str]:
	if name in ("GPSLatitude", "GPSLongitude"):
		deg = _dms_to_degrees(raw)
		return f"{deg:.6f}" if deg is not None else None
	if name == "GPSAltitude":
		alt = _rational_to_float(raw)
		if alt is None:
			return None
		# GPSAltitudeRef 1 = below sea level
		if gps.get(piexif.GPSIFD.GPSAltitudeRef) == 1:
			alt = -alt
		return f"{alt:.1f} m"
	if name == "ExposureTime":
		return _format_exposure(_rational_to_float(raw))
	if name == "FNumber":
		f = _rational_to_float(raw)
		return f"f/{f:.1f}" if f else None
	if name == "ApertureValue":
		f = _apex_to_fnumber(_rational_to_float(raw))
		return f"f/{f:.1f}" if f else None
	if name == "FocalLength":
		mm = _rational_to_float(raw)
		return f"{mm:g} mm" if mm else None
	if name == "ISO":
		iso = _iso_speed(raw)
		return str(iso) if iso is not None else None
	if isinstance(raw, tuple) and len(raw) == 2 and all(isinstance(p, int) for p in raw):
		value = _rational_to_float(raw)
		return f"{value:g}" if value is not None else None
	return _bytes_to_str(raw)


def _exif_tags(exif: Dict[str, Any]) -> Dict[str, str]:
	tags: Dict[str, str] = {}
	gps = exif.get("GPS") or {}
	for ifd in ("0th", "Exif", "GPS"):
		for tag_id, raw in (exif.get(ifd) or {}).items():
			info = piexif.TAGS[ifd].get(tag_id)
			if info is None:
				continue
			name = PIEXIF_ALIASES.get(info["name"], info["name"])
			value = _describe(name, raw, gps)
			if value:
				tags.setdefault(name, value)
	if "ExposureTime" not in tags:
		# no ExposureTime written: derive it from the APEX shutter speed
		ss_apex = _rational_to_float((exif.get("Exif") or {}).get(piexif.ExifIFD.ShutterSpeedValue))
		exposure = _format_exposure(_apex_to_time(ss_apex))
		if exposure:
			tags["ExposureTime"] = exposure
	return tags


def _iptc_tags(img: Image.Image) -> Dict[str, str]:
	info = IptcImagePlugin.getiptcinfo(img) or {}
	tags: Dict[str, str] = {}
	for key, name in IPTC_TAGS.items():
		raw = info.get(key)
		if isinstance(raw, list):
			raw = b", ".join(raw)
		value = _bytes_to_str(raw)
		if value:
			tags[name] = value
	return tags


class PillowSource:
	"""Secondary tag source: Pillow + piexif over the raw file bytes, no subprocess."""

	def read(self, path: PathLike) -> Dict[str, str]:
		data = Path(path).read_bytes()
		with Image.open(BytesIO(data)) as img:
			tags: Dict[str, str] = {}
			if img.format:
				tags["FileType"] = img.format
			mime = img.get_format_mimetype()
			if mime:
				tags["MIMEType"] = mime
			exif_bytes = img.info.get("exif")
			if exif_bytes is None and img.format == "TIFF":
				# piexif reads the TIFF header and IFDs straight from the file
				exif_bytes = data
			if exif_bytes:
				tags.update(_exif_tags(piexif.load(exif_bytes)))
			for name, value in _iptc_tags(img).items():
				tags.setdefault(name, value)
		logger.debug("Fallback reader found %d tags in %s", len(tags), path)
		return tags
