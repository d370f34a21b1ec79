"""
Shared fixtures for the metadata viewer tests.

Provides:
- Recording fake tag sources / file selector
- Image files on disk (sized blob, real JPEG with EXIF via piexif,
  JPEG with an IPTC APP13 segment, TIFF with IFD0 camera tags)
- FastAPI TestClient wired with the fakes
"""

import struct
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional

import piexif
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.config import load_settings
from api.main import create_app


class FakeSource:
    """Tag source that records every read and returns canned tags (or raises)."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.tags = tags or {}
        self.error = error
        self.calls = []
        self.started = 0
        self.stopped = 0

    def read(self, path):
        self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        return dict(self.tags)

    def start(self):
        self.started += 1

    def stop(self):
        self.stopped += 1


class FakeSelector:
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.calls = 0

    def select(self):
        self.calls += 1
        return self.path


COMPLETE_TAGS: Dict[str, Any] = {
    "SourceFile": "photo.jpg",
    "FileType": "JPEG",
    "MIMEType": "image/jpeg",
    "DateTimeOriginal": "2024:05:01 10:00:00",
    "TimeZone": "+02:00",
    "ModifyDate": "2024:05:02 09:30:00",
    "GPSLatitudeRef": "North",
    "GPSLatitude": "40.446194",
    "GPSLongitudeRef": "West",
    "GPSLongitude": "79.982222",
    "GPSAltitude": "123.4 m",
    "City": "Pittsburgh",
    "State": "PA",
    "Country": "USA",
    "Make": "Canon",
    "Model": "Canon EOS R5",
    "LensModel": "RF24-70mm F2.8 L IS USM",
    "FocalLength": "50.0 mm",
    "FNumber": 2.8,
    "ExposureTime": "1/125",
    "ISO": 200,
    "Artist": "Jane Doe",
    "Copyright": "(c) Jane Doe",
    "Software": "Firmware 1.8",
}


@pytest.fixture
def fake_source():
    """Factory for FakeSource instances."""
    return FakeSource


@pytest.fixture
def complete_tags():
    return dict(COMPLETE_TAGS)


@pytest.fixture
def image_file(tmp_path) -> Path:
    """2.5 MiB file; contents are irrelevant when the sources are fakes."""
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\0" * (2 * 1024 * 1024 + 512 * 1024))
    return path


@pytest.fixture
def exif_jpeg(tmp_path) -> Path:
    """Real JPEG carrying camera, exposure, date and GPS tags."""
    exif_dict = {
        "0th": {
            piexif.ImageIFD.Make: b"Canon ",
            piexif.ImageIFD.Model: b"Canon EOS R5",
            piexif.ImageIFD.Software: b"Firmware 1.8",
            piexif.ImageIFD.Artist: b"Jane Doe",
            piexif.ImageIFD.DateTime: b"2024:05:02 09:30:00",
        },
        "Exif": {
            piexif.ExifIFD.DateTimeOriginal: b"2024:05:01 10:00:00",
            piexif.ExifIFD.ExposureTime: (1, 125),
            piexif.ExifIFD.FNumber: (28, 10),
            piexif.ExifIFD.FocalLength: (50, 1),
            piexif.ExifIFD.ISOSpeedRatings: 200,
        },
        "GPS": {
            piexif.GPSIFD.GPSLatitudeRef: b"N",
            piexif.GPSIFD.GPSLatitude: ((40, 1), (26, 1), (4630, 100)),
            piexif.GPSIFD.GPSLongitudeRef: b"W",
            piexif.GPSIFD.GPSLongitude: ((79, 1), (58, 1), (56, 1)),
            piexif.GPSIFD.GPSAltitudeRef: 0,
            piexif.GPSIFD.GPSAltitude: (1234, 10),
        },
    }
    path = tmp_path / "exif.jpg"
    Image.new("RGB", (16, 16), (200, 40, 40)).save(path, format="JPEG", exif=piexif.dump(exif_dict))
    return path


@pytest.fixture
def plain_png(tmp_path) -> Path:
    path = tmp_path / "plain.png"
    Image.new("RGB", (8, 8), (0, 0, 0)).save(path, format="PNG")
    return path


def _iptc_dataset(number: int, value: bytes) -> bytes:
    # IPTC IIM record 2 dataset: marker, record, number, 16-bit length, data
    return b"\x1c\x02" + bytes([number]) + struct.pack(">H", len(value)) + value


def _photoshop_app13(iptc: bytes) -> bytes:
    resource = b"8BIM" + struct.pack(">H", 0x0404) + b"\x00\x00" + struct.pack(">I", len(iptc)) + iptc
    if len(resource) % 2:
        resource += b"\x00"
    payload = b"Photoshop 3.0\x00" + resource
    return b"\xff\xed" + struct.pack(">H", len(payload) + 2) + payload


@pytest.fixture
def iptc_jpeg(tmp_path) -> Path:
    """JPEG without EXIF whose APP13 segment carries IPTC by-line, city and country."""
    buf = BytesIO()
    Image.new("RGB", (16, 16), (40, 200, 40)).save(buf, format="JPEG")
    data = buf.getvalue()
    iptc = _iptc_dataset(80, b"Jane Doe") + _iptc_dataset(90, b"Lyon") + _iptc_dataset(101, b"France")
    path = tmp_path / "iptc.jpg"
    path.write_bytes(data[:2] + _photoshop_app13(iptc) + data[2:])
    return path


@pytest.fixture
def exif_tiff(tmp_path) -> Path:
    """TIFF whose camera tags live in the image's own IFD0."""
    exif_dict = {
        "0th": {
            piexif.ImageIFD.Make: b"Nikon",
            piexif.ImageIFD.Model: b"Nikon Z6",
        },
    }
    path = tmp_path / "scan.tiff"
    Image.new("RGB", (8, 8), (10, 10, 10)).save(path, format="TIFF", exif=piexif.dump(exif_dict))
    return path


@pytest.fixture
def primary(complete_tags):
    return FakeSource(complete_tags)


@pytest.fixture
def secondary():
    return FakeSource({})


@pytest.fixture
def selector(image_file):
    return FakeSelector(str(image_file))


@pytest.fixture
def app(primary, secondary, selector):
    return create_app(primary=primary, secondary=secondary, file_selector=selector, settings=load_settings({}))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
