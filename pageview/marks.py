"""Named marks that remember and restore a position in the document."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

__all__ = ["Mark", "MarkStore", "MarkTarget", "is_mark_key"]

_LETTERS = frozenset(string.ascii_letters)
_MARK_KEYS = _LETTERS | frozenset(string.digits)


def is_mark_key(key: str) -> bool:
    """Return True if ``key`` may name a mark set by a key press (a-z, A-Z, 0-9)."""
    return isinstance(key, str) and len(key) == 1 and key in _MARK_KEYS


def _is_command_key(key: str) -> bool:
    return isinstance(key, str) and len(key) == 1 and key in _LETTERS


class MarkTarget(Protocol):
    """The view whose position marks record and restore."""

    page: int
    position_x: float
    position_y: float
    zoom: float

    def set_zoom(self, zoom: float) -> None: ...

    def jumplist_add(self) -> None: ...

    def set_page(self, page: int) -> None: ...

    def set_position(self, x: float, y: float) -> None: ...


@dataclass
class Mark:
    """A remembered position: page, adjustments and zoom level."""

    key: str
    position_x: float
    position_y: float
    page: int
    zoom: float


class _Pending(enum.Enum):
    NONE = enum.auto()
    ADD = enum.auto()
    EVALUATE = enum.auto()


class MarkStore:
    """Keeps the marks of a view and handles the mark commands and shortcuts.

    Without a target (no open document) marks cannot be added or evaluated.
    """

    def __init__(self, target: Optional[MarkTarget] = None) -> None:
        self.target = target
        self._marks: list[Mark] = []
        self._pending = _Pending.NONE

    @property
    def marks(self) -> tuple[Mark, ...]:
        return tuple(self._marks)

    @property
    def waiting_for_key(self) -> bool:
        """True after begin_add or begin_evaluate until the next key arrives."""
        return self._pending is not _Pending.NONE

    def __len__(self) -> int:
        return len(self._marks)

    def get(self, key: str) -> Optional[Mark]:
        return next((mark for mark in self._marks if mark.key == key), None)

    def add(self, key: str) -> Optional[Mark]:
        """Record the target's current position under ``key``; return the mark."""
        target = self.target
        if target is None:
            return None

        existing = self.get(key)
        if existing is not None:
            existing.page = target.page
            existing.position_x = target.position_x
            existing.position_y = target.position_y
            existing.zoom = target.zoom
            return existing

        mark = Mark(
            key=key,
            position_x=target.position_x,
            position_y=target.position_y,
            page=target.page,
            zoom=target.zoom,
        )
        self._marks.append(mark)
        return mark

    def evaluate(self, key: str) -> bool:
        """Jump to the mark named ``key``; return False if there is none."""
        target = self.target
        mark = self.get(key)
        if target is None or mark is None:
            return False

        target.set_zoom(mark.zoom)
        target.jumplist_add()
        target.set_page(mark.page)
        target.set_position(mark.position_x, mark.position_y)
        target.jumplist_add()
        return True

    def delete(self, keys: Iterable[str]) -> int:
        """Remove the marks named by the letters in ``keys``; return how many went."""
        removed = 0
        for key in keys:
            if not _is_command_key(key):
                continue
            before = len(self._marks)
            self._marks = [mark for mark in self._marks if mark.key != key]
            removed += before - len(self._marks)
        return removed

    def cmd_add(self, arguments: list[str]) -> Mark:
        """Handle the mark command: its first argument is a single letter.

        Raises ValueError for a missing or invalid argument, and RuntimeError
        if there is no document to mark.
        """
        if not arguments:
            raise ValueError("a mark needs a key")
        key = arguments[0]
        if key is None or not _is_command_key(key):
            raise ValueError(f"invalid mark key: {key!r}")
        mark = self.add(key)
        if mark is None:
            raise RuntimeError("no document to mark")
        return mark

    def cmd_delete(self, arguments: list[str]) -> int:
        """Handle the delete-marks command: every letter of every argument is a key.

        Raises ValueError if no arguments are given; returns the number removed.
        """
        if not arguments:
            raise ValueError("no marks given to delete")
        if not self._marks:
            return 0
        return sum(self.delete(argument) for argument in arguments if argument is not None)

    def begin_add(self) -> None:
        """Make the next key press set a mark."""
        self._pending = _Pending.ADD

    def begin_evaluate(self) -> None:
        """Make the next key press jump to a mark."""
        self._pending = _Pending.EVALUATE

    def handle_key(self, key: str) -> bool:
        """Feed a key press; return True if it was consumed by a pending mark action."""
        pending, self._pending = self._pending, _Pending.NONE
        if pending is _Pending.NONE:
            return False
        if not is_mark_key(key):
            return pending is _Pending.EVALUATE
        if pending is _Pending.ADD:
            self.add(key)
        else:
            self.evaluate(key)
        return True