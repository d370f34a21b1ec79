"""
Window-side collaborators handed to the host API.

- WebviewFileSelector: native open dialog filtered to image extensions
- WebviewNotifier: fire-and-forget events dispatched on the page's window
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import webview

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "tiff", "tif", "heic", "webp", "gif")

MENU_OPEN_FILE = "menu-open-file"
MENU_CLEAR = "menu-clear"


def file_type_filters() -> Tuple[str, ...]:
    patterns = ";".join(f"*.{ext}" for ext in IMAGE_EXTENSIONS)
    return (f"Images ({patterns})", "All files (*.*)")


class WebviewFileSelector:
    def __init__(self, window) -> None:
        self.window = window

    def select(self) -> Optional[str]:
        result = self.window.create_file_dialog(
            webview.OPEN_DIALOG,
            allow_multiple=False,
            file_types=file_type_filters(),
        )
        if not result:
            return None
        # some backends return a bare string instead of a sequence
        path = result if isinstance(result, str) else result[0]
        return str(Path(path).resolve())


class WebviewNotifier:
    def __init__(self, window) -> None:
        self.window = window

    def send(self, channel: str) -> None:
        logger.debug("Notify display: %s", channel)
        self.window.evaluate_js(f"window.dispatchEvent(new CustomEvent({json.dumps(channel)}))")
