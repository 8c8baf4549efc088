"""Document pages and the plugin operations that act on them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from pageview.plugin import Plugin

__all__ = [
    "ErrorCode",
    "Image",
    "Page",
    "PageError",
    "Rectangle",
    "SignatureInfo",
    "SignatureState",
]


class ErrorCode(enum.Enum):
    OK = 0
    UNKNOWN = 1
    OUT_OF_MEMORY = 2
    NOT_IMPLEMENTED = 3
    INVALID_ARGUMENTS = 4


class PageError(Exception):
    """Raised when a page operation fails; ``code`` tells why."""

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        super().__init__(message or code.name.replace("_", " ").lower())
        self.code = code


@dataclass
class Rectangle:
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0


@dataclass
class Image:
    """An image embedded in a page."""

    position: Rectangle = field(default_factory=Rectangle)
    data: Any = None


class SignatureState(enum.Enum):
    VALID = enum.auto()
    CERTIFICATE_EXPIRED = enum.auto()
    CERTIFICATE_REVOKED = enum.auto()
    CERTIFICATE_UNTRUSTED = enum.auto()
    CERTIFICATE_INVALID = enum.auto()
    INVALID = enum.auto()


@dataclass
class SignatureInfo:
    signer: Optional[str] = None
    time: Optional[datetime] = None
    position: Rectangle = field(default_factory=Rectangle)
    state: SignatureState = SignatureState.INVALID


def _check(code: Optional[ErrorCode]) -> None:
    if code is not None and code is not ErrorCode.OK:
        raise PageError(code)


class Page:
    """One page of a document, backed by the plugin that handles the document.

    Plugin page functions receive the page and its ``data``; they may raise
    PageError to report a failure.
    """

    def __init__(self, plugin: Plugin, index: int, document: Any = None) -> None:
        if plugin is None:
            raise PageError(ErrorCode.INVALID_ARGUMENTS, "a page needs a plugin")
        self.plugin = plugin
        self.index = index
        self.document = document
        self.width = 0.0
        self.height = 0.0
        self.visible = False
        self.data: Any = None
        self._closed = False

        init = plugin.functions.page_init
        if init is None:
            raise PageError(ErrorCode.NOT_IMPLEMENTED, "plugin cannot initialise pages")
        _check(init(self))

    @property
    def closed(self) -> bool:
        return self._closed

    def _function(self, name: str) -> Callable:
        if self._closed:
            raise PageError(ErrorCode.INVALID_ARGUMENTS, "page is closed")
        function = getattr(self.plugin.functions, name)
        if function is None:
            raise PageError(ErrorCode.NOT_IMPLEMENTED, f"plugin does not provide {name}")
        return function

    def close(self) -> None:
        """Release the plugin's page data."""
        clear = self._function("page_clear")
        try:
            _check(clear(self, self.data))
        finally:
            self._closed = True

    def __enter__(self) -> "Page":
        return self

    def __exit__(self, *exc_info) -> None:
        if not self._closed:
            self.close()

    def search_text(self, text: str) -> list[Rectangle]:
        """Return the rectangles where ``text`` occurs on the page."""
        if text is None:
            raise PageError(ErrorCode.INVALID_ARGUMENTS, "no search text")
        result = self._function("page_search_text")(self, self.data, text)
        return list(result or ())

    def links(self) -> list:
        result = self._function("page_links_get")(self, self.data)
        return list(result or ())

    def form_fields(self) -> list:
        result = self._function("page_form_fields_get")(self, self.data)
        return list(result or ())

    def images(self) -> list[Image]:
        result = self._function("page_images_get")(self, self.data)
        return list(result or ())

    def image_surface(self, image: Image):
        """Return the surface holding ``image``'s pixels."""
        if image is None:
            raise PageError(ErrorCode.INVALID_ARGUMENTS, "no image")
        return self._function("page_image_get_cairo")(self, self.data, image)

    def text(self, rectangle: Rectangle) -> str:
        """Return the text inside ``rectangle``."""
        result = self._function("page_get_text")(self, self.data, rectangle)
        return result or ""

    def selection(self, rectangle: Rectangle) -> list[Rectangle]:
        """Return the rectangles covering the text selected by ``rectangle``."""
        result = self._function("page_get_selection")(self, self.data, rectangle)
        return list(result or ())

    def render(self, target, printing: bool = False) -> None:
        """Draw the page onto ``target``."""
        if target is None:
            raise PageError(ErrorCode.INVALID_ARGUMENTS, "no render target")
        _check(self._function("page_render_cairo")(self, self.data, target, printing))

    def label(self) -> Optional[str]:
        """Return the page label, or None if the page has none."""
        return self._function("page_get_label")(self, self.data)

    def signatures(self) -> list[SignatureInfo]:
        result = self._function("page_get_signatures")(self, self.data)
        return list(result or ())