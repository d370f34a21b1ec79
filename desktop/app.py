from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

import uvicorn
import webview

from api.config import APP_NAME, Settings, load_settings
from api.logging_config import setup_logging
from api.main import create_app
from api.services.metadata import MetadataExtractor, extract_result
from api.services.sources import ExifToolSource, PillowSource
from desktop.menu import MenuCommands, build_menu
from desktop.window import WebviewFileSelector, WebviewNotifier

logger = logging.getLogger(__name__)

WINDOW_BACKGROUND = "#0f172a"


def start_server(app, settings: Settings, timeout: float = 10.0) -> tuple:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our logging setup
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="uvicorn", daemon=True)
    thread.start()

    deadline = time.monotonic() + timeout
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise SystemExit(f"Could not start the host API on {settings.base_url}")
        time.sleep(0.05)
    logger.info("Host API listening on %s", settings.base_url)
    return server, thread


def run_gui(settings: Settings) -> int:
    window = webview.create_window(
        APP_NAME,
        settings.base_url,
        width=settings.window_width,
        height=settings.window_height,
        background_color=WINDOW_BACKGROUND,
    )
    app = create_app(file_selector=WebviewFileSelector(window), settings=settings)
    server, thread = start_server(app, settings)

    commands = MenuCommands(window, WebviewNotifier(window))
    try:
        # blocks until the last window is closed
        webview.start(menu=build_menu(commands), debug=settings.debug)
    finally:
        # server shutdown runs the lifespan exit, which stops exiftool
        server.should_exit = True
        thread.join()
    return 0


def run_extract(path: Path, settings: Settings, indent: Optional[int] = 2) -> int:
    primary = ExifToolSource(settings.exiftool_path)
    try:
        result = extract_result(MetadataExtractor(primary, PillowSource()), path)
    finally:
        primary.stop()
    print(json.dumps(result, indent=indent, ensure_ascii=False))
    return 0 if result["success"] else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="photo-forensics", description="View image metadata (EXIF/IPTC/XMP)")
    parser.add_argument("--log-level", default=None, help="Override PHOTO_FORENSICS_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("gui", help="Open the desktop viewer (default)")
    extract = sub.add_parser("extract", help="Print normalized metadata for one file as JSON")
    extract.add_argument("path", help="Image file to inspect")
    extract.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(args.log_level or settings.log_level)

    if args.command == "extract":
        return run_extract(Path(args.path).resolve(), settings, indent=args.indent)
    return run_gui(settings)


if __name__ == "__main__":
    sys.exit(main())
