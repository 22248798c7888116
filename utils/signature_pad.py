"""Freehand signature capture, written against an abstract 2D drawing capability.

The surface has two states, idle and drawing. Pointer-down starts a path,
pointer-move extends it and renders the new segment straight away, and
pointer-up / pointer-leave / touch-end closes the path and hands the
serialized image to the ``on_change`` callback. ``clear`` wipes the raster and
reports an empty string.

Any toolkit can host the surface by implementing :class:`DrawingContext`;
:mod:`utils.signature_raster` provides a Pillow implementation and the page
ships a canvas implementation in ``static/js/signature_pad.js``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

from utils.image_utils import SignatureDecodeError, decode_data_url

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Draw your signature here"

MOUSE = "mouse"
TOUCH = "touch"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    """On-screen rectangle of the surface in CSS pixels."""

    left: float
    top: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height


@dataclass(frozen=True)
class PointerEvent:
    kind: str
    client_x: float = 0.0
    client_y: float = 0.0
    touches: Tuple[Tuple[float, float], ...] = ()

    @classmethod
    def mouse(cls, x: float, y: float) -> "PointerEvent":
        return cls(kind=MOUSE, client_x=x, client_y=y)

    @classmethod
    def touch(cls, *points: Tuple[float, float]) -> "PointerEvent":
        return cls(kind=TOUCH, touches=tuple(points))


class DrawingContext(Protocol):
    pixel_ratio: float
    pixel_size: Tuple[int, int]

    def bounds(self) -> Bounds: ...

    def begin_path(self, point: Point) -> None: ...

    def line_to(self, point: Point) -> None: ...

    def dot(self, point: Point) -> None: ...

    def close_path(self) -> None: ...

    def clear(self) -> None: ...

    def draw_image(self, content: bytes) -> None: ...

    def to_data_url(self) -> str: ...


class SignatureSurface:
    def __init__(self, on_change: Callable[[str], None], value: str = "") -> None:
        self._on_change = on_change
        self._initial = value or ""
        self._value = self._initial
        self._context: Optional[DrawingContext] = None
        self._anchor: Optional[Point] = None
        self._moved = False
        self.is_drawing = False
        self.has_content = bool(self._initial)

    @property
    def value(self) -> str:
        return self._value

    @property
    def mounted(self) -> bool:
        return self._context is not None

    @property
    def placeholder(self) -> Optional[str]:
        return None if self.has_content else PLACEHOLDER_TEXT

    def mount(self, context: DrawingContext) -> None:
        """Attach a drawing context and paint the initial signature, if any."""
        self._context = context
        if not self._initial:
            return
        context.clear()
        try:
            content = decode_data_url(self._initial)
        except SignatureDecodeError as exc:
            # Same outcome as an image that never loads: blank surface, nothing reported.
            logger.debug("Initial signature not rendered: %s", exc)
            self.has_content = False
            self._value = ""
            return
        context.draw_image(content)
        self.has_content = True

    def unmount(self) -> None:
        self._context = None
        self._anchor = None
        self.is_drawing = False

    def _position(self, event: PointerEvent) -> Optional[Point]:
        if self._context is None:
            return None
        rect = self._context.bounds()
        if event.kind == MOUSE:
            return Point(event.client_x - rect.left, event.client_y - rect.top)
        if event.touches:
            x, y = event.touches[0]
            return Point(x - rect.left, y - rect.top)
        return None

    def pointer_down(self, event: PointerEvent) -> None:
        pos = self._position(event)
        if pos is None or not self._context.bounds().contains(pos):
            return
        self._context.begin_path(pos)
        self._anchor = pos
        self._moved = False
        self.is_drawing = True
        self.has_content = True

    def pointer_move(self, event: PointerEvent) -> bool:
        """Extend the open stroke. Returns True when the page must not scroll."""
        if not self.is_drawing:
            return False
        pos = self._position(event)
        if pos is None:
            return False
        self._context.line_to(pos)
        self._moved = True
        return event.kind == TOUCH

    def pointer_up(self) -> None:
        if self._context is None or not self.is_drawing:
            return
        if not self._moved and self._anchor is not None:
            self._context.dot(self._anchor)
        self._context.close_path()
        self.is_drawing = False
        self._anchor = None
        self._emit(self._context.to_data_url())

    def pointer_leave(self) -> None:
        self.pointer_up()

    def touch_end(self) -> None:
        self.pointer_up()

    def clear(self) -> None:
        if self._context is not None:
            self._context.clear()
        self.is_drawing = False
        self._anchor = None
        self.has_content = False
        self._emit("")

    def _emit(self, value: str) -> None:
        self._value = value
        self._on_change(value)
