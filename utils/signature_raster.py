"""Pillow-backed drawing context for the signature surface, plus stroke replay."""
from __future__ import annotations

import io
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from utils.image_utils import encode_png_data_url
from utils.signature_pad import Bounds, Point, PointerEvent, SignatureSurface

STROKE_COLOR = (0, 0, 0, 255)
TRANSPARENT = (0, 0, 0, 0)
LINE_WIDTH = 2


class RasterDrawingContext:
    """Transparent RGBA raster sized CSS size x pixel ratio.

    Coordinates arrive in CSS pixels and are scaled by the pixel ratio, so a
    stroke drawn on a 400x200 pad at ratio 2 lands on an 800x400 image.
    """

    def __init__(
        self,
        css_width: float,
        css_height: float,
        pixel_ratio: float = 1.0,
        *,
        left: float = 0.0,
        top: float = 0.0,
    ) -> None:
        if css_width <= 0 or css_height <= 0:
            raise ValueError("Surface dimensions must be positive")
        self.pixel_ratio = pixel_ratio if pixel_ratio and pixel_ratio > 0 else 1.0
        self._bounds = Bounds(left=left, top=top, width=css_width, height=css_height)
        self.pixel_size = (
            max(1, round(css_width * self.pixel_ratio)),
            max(1, round(css_height * self.pixel_ratio)),
        )
        self._last: Optional[Tuple[float, float]] = None
        self._reset()

    def _reset(self) -> None:
        self._image = Image.new("RGBA", self.pixel_size, TRANSPARENT)
        self._draw = ImageDraw.Draw(self._image)

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def stroke_width(self) -> int:
        return max(1, round(LINE_WIDTH * self.pixel_ratio))

    def bounds(self) -> Bounds:
        return self._bounds

    def _scale(self, point: Point) -> Tuple[float, float]:
        return (point.x * self.pixel_ratio, point.y * self.pixel_ratio)

    def _round_cap(self, xy: Tuple[float, float]) -> None:
        r = self.stroke_width / 2
        x, y = xy
        self._draw.ellipse([x - r, y - r, x + r, y + r], fill=STROKE_COLOR)

    def begin_path(self, point: Point) -> None:
        self._last = self._scale(point)

    def line_to(self, point: Point) -> None:
        end = self._scale(point)
        if self._last is None:
            self._last = end
            return
        self._draw.line([self._last, end], fill=STROKE_COLOR, width=self.stroke_width)
        # round joins
        self._round_cap(self._last)
        self._round_cap(end)
        self._last = end

    def dot(self, point: Point) -> None:
        self._round_cap(self._scale(point))

    def close_path(self) -> None:
        self._last = None

    def clear(self) -> None:
        self._last = None
        self._reset()

    def draw_image(self, content: bytes) -> None:
        """Replace the raster with ``content`` stretched over the whole surface."""
        with Image.open(io.BytesIO(content)) as src:
            frame = src.convert("RGBA")
        if frame.size != self.pixel_size:
            frame = frame.resize(self.pixel_size, Image.Resampling.LANCZOS)
        self._image.paste(frame, (0, 0))

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self._image.save(buf, format="PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        return encode_png_data_url(self.to_png())


def _event_point(event: Mapping, key: str) -> float:
    try:
        return float(event[key])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Pointer event needs a numeric '{key}'") from exc


def replay_events(
    events: Iterable[Mapping],
    css_width: float,
    css_height: float,
    pixel_ratio: float = 1.0,
    *,
    left: float = 0.0,
    top: float = 0.0,
    value: str = "",
) -> SignatureSurface:
    """Feed a recorded event stream through a fresh surface and return it.

    Each event is a mapping with ``type`` (``pointerdown``, ``pointermove``,
    ``pointerup``, ``pointerleave``, ``touchstart``, ``touchmove``,
    ``touchend`` or ``clear``) and client coordinates ``x``/``y`` for the
    down and move kinds.
    """
    surface = SignatureSurface(on_change=lambda _value: None, value=value)
    surface.mount(RasterDrawingContext(css_width, css_height, pixel_ratio, left=left, top=top))

    for event in events:
        kind = str(event.get("type", "")).lower()
        if kind in ("pointerdown", "mousedown"):
            surface.pointer_down(PointerEvent.mouse(_event_point(event, "x"), _event_point(event, "y")))
        elif kind in ("pointermove", "mousemove"):
            surface.pointer_move(PointerEvent.mouse(_event_point(event, "x"), _event_point(event, "y")))
        elif kind == "touchstart":
            surface.pointer_down(PointerEvent.touch((_event_point(event, "x"), _event_point(event, "y"))))
        elif kind == "touchmove":
            surface.pointer_move(PointerEvent.touch((_event_point(event, "x"), _event_point(event, "y"))))
        elif kind in ("pointerup", "mouseup"):
            surface.pointer_up()
        elif kind in ("pointerleave", "mouseleave"):
            surface.pointer_leave()
        elif kind == "touchend":
            surface.touch_end()
        elif kind == "clear":
            surface.clear()
        else:
            raise ValueError(f"Unknown pointer event type: {kind or '<missing>'}")

    # An unterminated stroke is finalized like a pointer leaving the pad.
    surface.pointer_leave()
    return surface


def strokes_to_events(strokes: Sequence[Sequence[Tuple[float, float]]]) -> List[dict]:
    events: List[dict] = []
    for stroke in strokes:
        if not stroke:
            continue
        x, y = stroke[0]
        events.append({"type": "pointerdown", "x": x, "y": y})
        for x, y in stroke[1:]:
            events.append({"type": "pointermove", "x": x, "y": y})
        events.append({"type": "pointerup"})
    return events
