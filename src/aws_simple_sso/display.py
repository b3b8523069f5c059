"""Ways of showing the device verification URL to the user."""

from __future__ import annotations

import logging
import sys
import webbrowser
from typing import Protocol, TextIO

logger = logging.getLogger(__name__)


class UriDisplay(Protocol):
    def show(self, uri: str) -> None: ...


class ConsoleUriDisplay:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def show(self, uri: str) -> None:
        stream = self._stream or sys.stderr
        print("Please visit the following URL to authenticate:", file=stream)
        print(uri, file=stream)
        stream.flush()


class BrowserUriDisplay:
    """Open the URL in a browser tab, printing it when no browser is available."""

    def __init__(self, fallback: UriDisplay | None = None) -> None:
        self._fallback = fallback or ConsoleUriDisplay()

    def show(self, uri: str) -> None:
        try:
            opened = webbrowser.open_new_tab(uri)
        except webbrowser.Error as exc:
            logger.warning("Failed to open browser: %s", exc)
            opened = False
        if not opened:
            self._fallback.show(uri)
