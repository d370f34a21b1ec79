from __future__ import annotations

import webbrowser
from typing import Callable, List

from webview.menu import Menu, MenuAction, MenuSeparator

from api.config import APP_NAME, APP_VERSION
from desktop.window import MENU_CLEAR, MENU_OPEN_FILE

EXIFTOOL_DOCS_URL = "https://exiftool.org/"
PYWEBVIEW_DOCS_URL = "https://pywebview.flowrl.com/"

ABOUT_DETAIL = (
    "A powerful desktop app to view detailed image metadata.\n\n"
    f"Version {APP_VERSION}\nBuilt with pywebview and FastAPI"
)


class MenuCommands:
    """Actions behind the application menu; Open and Clear only notify the page."""

    def __init__(self, window, notifier, open_url: Callable[[str], bool] = webbrowser.open) -> None:
        self.window = window
        self.notifier = notifier
        self.open_url = open_url

    def open_file(self) -> None:
        self.notifier.send(MENU_OPEN_FILE)

    def clear(self) -> None:
        self.notifier.send(MENU_CLEAR)

    def quit(self) -> None:
        self.window.destroy()

    def reload(self) -> None:
        self.window.evaluate_js("location.reload()")

    def toggle_fullscreen(self) -> None:
        self.window.toggle_fullscreen()

    def about(self) -> None:
        # pywebview has no info-only message box; the confirmation dialog is the
        # closest native one and its answer is ignored
        self.window.create_confirmation_dialog("About", f"{APP_NAME}\n\n{ABOUT_DETAIL}")

    def exiftool_docs(self) -> None:
        self.open_url(EXIFTOOL_DOCS_URL)

    def pywebview_docs(self) -> None:
        self.open_url(PYWEBVIEW_DOCS_URL)


def build_menu(commands: MenuCommands) -> List[Menu]:
    return [
        Menu(
            "File",
            [
                MenuAction("Open Image...", commands.open_file),
                MenuSeparator(),
                MenuAction("Clear", commands.clear),
                MenuSeparator(),
                MenuAction("Quit", commands.quit),
            ],
        ),
        Menu(
            "View",
            [
                MenuAction("Reload", commands.reload),
                MenuSeparator(),
                MenuAction("Toggle Full Screen", commands.toggle_fullscreen),
            ],
        ),
        Menu(
            "Help",
            [
                MenuAction(f"About {APP_NAME}", commands.about),
                MenuSeparator(),
                MenuAction("pywebview Documentation", commands.pywebview_docs),
                MenuAction("ExifTool Documentation", commands.exiftool_docs),
            ],
        ),
    ]
