"""
Normalize raw tag sets into the five display categories shown by the viewer.

Each display field lists the raw tag names it is read from, in priority order.
The primary source is read first; only when some field is still unresolved is
the secondary source read, and then only unresolved fields are filled from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, Union

logger = logging.getLogger(__name__)

NOT_FOUND = "Not found"
UNKNOWN = "Unknown"
SENTINELS = (NOT_FOUND, UNKNOWN)

Record = Dict[str, Dict[str, str]]
Tags = Mapping[str, Any]


class ExtractionError(Exception):
	"""The primary source could not produce a tag set for the file."""


class TagSource(Protocol):
	def read(self, path: Path) -> Dict[str, Any]:
		...


class WorkerSource(TagSource, Protocol):
	def start(self) -> None:
		...

	def stop(self) -> None:
		...


def display_value(value: Any) -> Optional[str]:
	"""Raw tag value -> trimmed display string, or None when it carries nothing."""
	if isinstance(value, (list, tuple)):
		# exiftool emits multi-valued tags (XMP Creator, Keywords) as JSON arrays
		parts = [display_value(v) for v in value]
		return ", ".join(p for p in parts if p) or None
	if isinstance(value, dict):
		value = value.get("description")
	elif value is not None and hasattr(value, "description"):
		value = value.description
	if value is None:
		return None
	if isinstance(value, bytes):
		value = value.decode("utf-8", errors="ignore")
	text = str(value).strip()
	if not text or text in SENTINELS:
		return None
	return text


def first_present(tags: Tags, keys: Tuple[str, ...]) -> Optional[str]:
	for key in keys:
		value = display_value(tags.get(key))
		if value is not None:
			return value
	return None


@dataclass(frozen=True)
class Lookup:
	keys: Tuple[str, ...]

	def resolve(self, tags: Tags) -> Optional[str]:
		return first_present(tags, self.keys)


@dataclass(frozen=True)
class Pair:
	"""Hemisphere reference + magnitude, both required from the same tag set."""

	ref_key: str
	value_key: str

	def resolve(self, tags: Tags) -> Optional[str]:
		ref = display_value(tags.get(self.ref_key))
		value = display_value(tags.get(self.value_key))
		if ref is None or value is None:
			return None
		return f"{ref} {value}"


@dataclass(frozen=True)
class Join:
	keys: Tuple[str, ...]
	sep: str = ", "

	def resolve(self, tags: Tags) -> Optional[str]:
		parts = [display_value(tags.get(k)) for k in self.keys]
		return self.sep.join(p for p in parts if p) or None


Rule = Union[Lookup, Pair, Join]


@dataclass(frozen=True)
class Field:
	name: str
	rule: Rule
	missing: str = NOT_FOUND


FILE_NAME = "File Name"
FILE_SIZE = "File Size"

# File Name / File Size come from the filesystem and precede these in "file"
FIELDS: Dict[str, Tuple[Field, ...]] = {
	"file": (
		Field("File Type", Lookup(("FileType", "MIMEType")), UNKNOWN),
	),
	"datetime": (
		Field("Date Taken", Lookup(("DateTimeOriginal", "CreateDate"))),
		Field("Time Zone", Lookup(("TimeZone", "OffsetTimeOriginal")), UNKNOWN),
		Field("Modified Date", Lookup(("ModifyDate",))),
	),
	"location": (
		Field("GPS Latitude", Pair("GPSLatitudeRef", "GPSLatitude")),
		Field("GPS Longitude", Pair("GPSLongitudeRef", "GPSLongitude")),
		Field("Altitude", Lookup(("GPSAltitude",))),
		Field("Location", Join(("City", "State", "Country"))),
	),
	"camera": (
		Field("Camera Make", Lookup(("Make",))),
		Field("Camera Model", Lookup(("Model",))),
		Field("Lens", Lookup(("LensModel", "Lens"))),
		Field("Focal Length", Lookup(("FocalLength",))),
		Field("Aperture", Lookup(("FNumber", "ApertureValue"))),
		Field("Shutter Speed", Lookup(("ExposureTime",))),
		Field("ISO", Lookup(("ISO",))),
	),
	"author": (
		Field("Artist/Author", Lookup(("Artist", "Creator"))),
		Field("Copyright", Lookup(("Copyright",))),
		Field("Software", Lookup(("Software",))),
	),
}


def format_file_size(num_bytes: int) -> str:
	return f"{num_bytes / 1024 / 1024:.2f} MB"


def is_missing(value: Optional[str]) -> bool:
	# a real value spelled "Unknown" is indistinguishable from the sentinel
	return not value or value in SENTINELS


def has_missing(record: Record) -> bool:
	return any(is_missing(v) for section in record.values() for v in section.values())


def resolve_fields(tags: Tags, file_name: str, file_size: str) -> Record:
	record: Record = {}
	for category, fields in FIELDS.items():
		section: Dict[str, str] = {}
		if category == "file":
			section[FILE_NAME] = file_name
			section[FILE_SIZE] = file_size
		for field in fields:
			section[field.name] = field.rule.resolve(tags) or field.missing
		record[category] = section
	return record


def fill_missing(record: Record, tags: Tags) -> Record:
	"""Return a new record with unresolved fields looked up in `tags`."""
	filled: Record = {}
	for category, section in record.items():
		section = dict(section)
		for field in FIELDS.get(category, ()):
			if is_missing(section.get(field.name)):
				section[field.name] = field.rule.resolve(tags) or field.missing
		filled[category] = section
	return filled


class MetadataExtractor:
	def __init__(self, primary: TagSource, secondary: TagSource) -> None:
		self.primary = primary
		self.secondary = secondary

	def extract(self, path: Union[str, Path]) -> Record:
		path = Path(path)
		try:
			tags = self.primary.read(path)
			size = path.stat().st_size
		except Exception as e:
			raise ExtractionError(str(e) or "Failed to read metadata") from e

		record = resolve_fields(tags, path.name, format_file_size(size))
		if not has_missing(record):
			return record

		try:
			fallback = self.secondary.read(path)
		except Exception:
			logger.warning("Fallback metadata read failed for %s", path, exc_info=True)
			return record
		return fill_missing(record, fallback)


def extract_result(extractor: MetadataExtractor, path: Union[str, Path]) -> Dict[str, Any]:
	"""Tagged result passed to the display: never raises for extraction failures."""
	try:
		metadata = extractor.extract(path)
	except ExtractionError as e:
		logger.exception("Metadata extraction error for %s", path)
		return {"success": False, "error": str(e)}
	return {"success": True, "metadata": metadata}
