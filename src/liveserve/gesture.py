"""Pinch-zoom and pan transform state machine.

The engine turns touch snapshots into a content transform (scale plus
translation, applied with ``transform-origin: 0 0``). While a gesture is in
progress only the provisional fields move; the committed fields change only
when the gesture ends, is cancelled, or is reset by a double tap.
"""
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

logger = logging.getLogger(__name__)

MIN_SCALE = 0.5
MAX_SCALE = 5.0
RESET_TRANSITION = "transform 0.25s ease"
RESET_TRANSITION_HOLD = 0.3  # seconds the transition stays applied after a double tap


class GestureMode(str, Enum):
    IDLE = "idle"
    PINCHING = "pinching"
    PANNING = "panning"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class TouchPoint:
    """One finger, in viewport coordinates."""
    client_x: float
    client_y: float


@dataclass(frozen=True)
class ScrollerGeometry:
    """Position and scroll offset of the element that scrolls the content."""
    left: float
    top: float
    scroll_left: float = 0.0
    scroll_top: float = 0.0

    def to_content(self, client_x: float, client_y: float) -> Point:
        """Map a viewport point into scroller content coordinates."""
        return Point(client_x - self.left + self.scroll_left,
                     client_y - self.top + self.scroll_top)


@dataclass(frozen=True)
class Transform:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def apply(self, local: Point) -> Point:
        """Where an element-local point lands after the transform."""
        return Point(self.translate_x + self.scale * local.x,
                     self.translate_y + self.scale * local.y)

    def invert(self, point: Point) -> Point:
        """Element-local point that the transform maps onto point."""
        return Point((point.x - self.translate_x) / self.scale,
                     (point.y - self.translate_y) / self.scale)

    def css(self) -> str:
        return f"translate({self.translate_x}px, {self.translate_y}px) scale({self.scale})"


IDENTITY = Transform()


@dataclass
class GestureState:
    committed_scale: float = 1.0
    committed_offset_x: float = 0.0
    committed_offset_y: float = 0.0
    provisional_scale: float = 1.0
    provisional_offset_x: float = 0.0
    provisional_offset_y: float = 0.0
    mode: GestureMode = GestureMode.IDLE
    anchor_point: Optional[Point] = None
    initial_pinch_distance: float = 0.0
    pan_anchor_offset: Optional[Point] = None

    @property
    def committed(self) -> Transform:
        return Transform(self.committed_scale, self.committed_offset_x, self.committed_offset_y)

    @property
    def provisional(self) -> Transform:
        return Transform(self.provisional_scale, self.provisional_offset_x, self.provisional_offset_y)


def distance(p1: TouchPoint, p2: TouchPoint) -> float:
    return math.hypot(p1.client_x - p2.client_x, p1.client_y - p2.client_y)


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(scale, MAX_SCALE))


class GestureEngine:
    """Transform engine for one (element, scroller) pair.

    Args:
        resolve_scroller: Returns the scroller's current geometry, or None if
            it cannot be found. Called on every touch that needs coordinates.
        clock: Monotonic time source, used for the double-tap transition
    """

    def __init__(self, resolve_scroller: Callable[[], Optional[ScrollerGeometry]],
                 clock: Callable[[], float] = time.monotonic):
        self.resolve_scroller = resolve_scroller
        self.clock = clock
        self.state = GestureState()
        self._transition_until: Optional[float] = None

    @property
    def mode(self) -> GestureMode:
        return self.state.mode

    @property
    def transform(self) -> Transform:
        """Transform to display right now."""
        if self.state.mode is GestureMode.IDLE:
            return self.state.committed
        return self.state.provisional

    @property
    def transition(self) -> str:
        if self._transition_until is not None and self.clock() < self._transition_until:
            return RESET_TRANSITION
        self._transition_until = None
        return ""

    @property
    def touch_action(self) -> str:
        # Zoomed-in content takes over single-finger drags for panning
        return "none" if self.state.committed_scale > 1 else "auto"

    def style(self) -> Dict[str, str]:
        """CSS properties the host applies to the element."""
        return {
            "transform-origin": "0 0",
            "transform": self.transform.css(),
            "transition": self.transition,
            "touch-action": self.touch_action,
        }

    def _content_point(self, touches: Sequence[TouchPoint]) -> Optional[Point]:
        """Centroid of touches in scroller content coordinates."""
        try:
            geometry = self.resolve_scroller()
        except Exception as e:
            logger.warning(f"Cannot resolve scroller: {e}")
            return None
        if geometry is None:
            logger.warning("Cannot find scroller element, skipping gesture update")
            return None

        count = len(touches)
        screen_x = sum(t.client_x for t in touches) / count
        screen_y = sum(t.client_y for t in touches) / count
        return geometry.to_content(screen_x, screen_y)

    def _begin_provisional(self) -> None:
        s = self.state
        s.provisional_scale = s.committed_scale
        s.provisional_offset_x = s.committed_offset_x
        s.provisional_offset_y = s.committed_offset_y

    def _commit(self) -> None:
        s = self.state
        s.committed_scale = s.provisional_scale
        s.committed_offset_x = s.provisional_offset_x
        s.committed_offset_y = s.provisional_offset_y

    def _clear_gesture(self) -> None:
        s = self.state
        s.mode = GestureMode.IDLE
        s.anchor_point = None
        s.initial_pinch_distance = 0.0
        s.pan_anchor_offset = None

    def touch_start(self, touches: Sequence[TouchPoint]) -> bool:
        """Handle touchstart. Returns True if the event was consumed."""
        s = self.state

        if len(touches) == 2:
            anchor = self._content_point(touches)
            if anchor is None:
                return False
            if s.mode is GestureMode.PANNING:
                # Second finger joined a pan: keep what the pan achieved
                self._commit()
            s.mode = GestureMode.PINCHING
            s.anchor_point = anchor
            s.initial_pinch_distance = distance(touches[0], touches[1])
            s.pan_anchor_offset = None
            self._begin_provisional()
            return True

        if len(touches) == 1 and s.committed_scale > 1 and s.mode is not GestureMode.PINCHING:
            hit = self._content_point(touches)
            if hit is None:
                return False
            s.mode = GestureMode.PANNING
            s.pan_anchor_offset = Point(hit.x - s.committed_offset_x, hit.y - s.committed_offset_y)
            self._begin_provisional()
            return True

        return False

    def touch_move(self, touches: Sequence[TouchPoint]) -> bool:
        """Handle touchmove. Returns True if the transform changed."""
        s = self.state

        if s.mode is GestureMode.PINCHING and len(touches) == 2:
            if s.initial_pinch_distance <= 0 or s.anchor_point is None:
                return False
            ratio = distance(touches[0], touches[1]) / s.initial_pinch_distance
            s.provisional_scale = clamp_scale(s.committed_scale * ratio)

            # Keep the anchor under the fingers
            scale_ratio = s.provisional_scale / s.committed_scale
            s.provisional_offset_x = s.anchor_point.x * (1 - scale_ratio) + s.committed_offset_x * scale_ratio
            s.provisional_offset_y = s.anchor_point.y * (1 - scale_ratio) + s.committed_offset_y * scale_ratio
            return True

        if s.mode is GestureMode.PANNING and len(touches) == 1 and s.committed_scale > 1:
            hit = self._content_point(touches)
            if hit is None or s.pan_anchor_offset is None:
                return False
            s.provisional_offset_x = hit.x - s.pan_anchor_offset.x
            s.provisional_offset_y = hit.y - s.pan_anchor_offset.y
            return True

        return False

    def touch_end(self, touches: Sequence[TouchPoint] = ()) -> None:
        """Handle touchend: commit whatever gesture was active."""
        if self.state.mode is GestureMode.IDLE:
            return
        self._commit()
        self._clear_gesture()

    def touch_cancel(self, touches: Sequence[TouchPoint] = ()) -> None:
        self.touch_end(touches)

    def reset(self) -> None:
        """Snap back to the identity transform."""
        s = self.state
        s.committed_scale = s.provisional_scale = 1.0
        s.committed_offset_x = s.provisional_offset_x = 0.0
        s.committed_offset_y = s.provisional_offset_y = 0.0
        self._clear_gesture()

    def double_tap(self) -> None:
        """Reset to identity with a short eased transition."""
        self.reset()
        self._transition_until = self.clock() + RESET_TRANSITION_HOLD
