from __future__ import annotations

import math
from typing import Optional, Tuple

import cv2
import numpy as np

from bubblecompass.navigation.tilt import TiltSettings, tilt_offsets

# BGR
_BG_TOP = (230, 200, 180)
_BG_BOTTOM = (215, 190, 205)
_BUBBLE = (245, 215, 190)
_BUBBLE_RIM = (255, 255, 255)
_HIGHLIGHT = (255, 250, 245)
_SHADOW = (120, 110, 110)
_ARROW = (30, 60, 235)
_ALIGNED = (70, 190, 60)
_TEXT = (40, 40, 40)


def arrow_tip(center: Tuple[float, float], length: float, rotation_deg: float) -> Tuple[float, float]:
    """Tip of an arrow of ``length`` rotated clockwise from straight up."""
    theta = math.radians(rotation_deg)
    return (center[0] + length * math.sin(theta), center[1] - length * math.cos(theta))


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def _background(width: int, height: int) -> np.ndarray:
    t = np.linspace(0.0, 1.0, height, dtype=np.float32)[:, None, None]
    top = np.array(_BG_TOP, dtype=np.float32)[None, None, :]
    bottom = np.array(_BG_BOTTOM, dtype=np.float32)[None, None, :]
    column = top * (1.0 - t) + bottom * t
    return np.repeat(column, width, axis=1).astype(np.uint8)


def render_dial(status, size: int = 480, settings: Optional[TiltSettings] = None) -> np.ndarray:
    """Draw the bubble compass for a CompassStatus snapshot; returns a BGR image.

    Non-finite inputs leave the affected element undrawn instead of raising.
    """
    text_h = int(size * 0.3)
    img = _background(size, size + text_h)
    cx = cy = size / 2.0
    radius = size * 0.31
    device = status.device
    derived = status.derived
    tilt = tilt_offsets(device.pitch, device.roll, settings)

    sx, sy = tilt.shadow_offset
    if _finite(sx, sy):
        shadow = img.copy()
        cv2.circle(shadow, (int(cx + sx), int(cy + sy)), int(radius * 1.05), _SHADOW, -1, cv2.LINE_AA)
        shadow = cv2.GaussianBlur(shadow, (0, 0), sigmaX=max(1.0, size / 40.0))
        img = cv2.addWeighted(shadow, 0.35, img, 0.65, 0)

    cv2.circle(img, (int(cx), int(cy)), int(radius), _BUBBLE, -1, cv2.LINE_AA)

    hx, hy = tilt.highlight_center
    if _finite(hx, hy):
        hl = img.copy()
        # unit point spans the bubble's bounding box
        px = int(cx - radius + hx * 2 * radius)
        py = int(cy - radius + hy * 2 * radius)
        cv2.circle(hl, (px, py), int(radius * 0.45), _HIGHLIGHT, -1, cv2.LINE_AA)
        hl = cv2.GaussianBlur(hl, (0, 0), sigmaX=max(1.0, size / 60.0))
        mask = np.zeros(img.shape[:2], dtype=np.uint8)
        cv2.circle(mask, (int(cx), int(cy)), int(radius), 255, -1, cv2.LINE_AA)
        img = np.where(mask[:, :, None] > 0, cv2.addWeighted(hl, 0.6, img, 0.4, 0), img)

    rim = _ALIGNED if derived.computed and derived.is_aligned else _BUBBLE_RIM
    cv2.circle(img, (int(cx), int(cy)), int(radius), rim, max(2, size // 120), cv2.LINE_AA)

    if derived.computed and _finite(derived.arrow_rotation):
        length = radius * 0.75
        tail = arrow_tip((cx, cy), -length * 0.45, derived.arrow_rotation)
        tip = arrow_tip((cx, cy), length, derived.arrow_rotation)
        cv2.arrowedLine(
            img,
            (int(tail[0]), int(tail[1])),
            (int(tip[0]), int(tip[1])),
            _ARROW,
            max(3, size // 40),
            cv2.LINE_AA,
            tipLength=0.3,
        )

    lines = [
        status.target_name,
        f"Distance: {status.distance_text}",
        f"Bearing: {_whole(derived.bearing_to_target) if derived.computed else '--'} deg",
        f"Your heading: {_whole(device.heading)} deg",
    ]
    scale = size / 800.0
    y = size + int(text_h * 0.2)
    for line in lines:
        cv2.putText(img, line, (int(size * 0.06), y), cv2.FONT_HERSHEY_SIMPLEX, scale, _TEXT, 1, cv2.LINE_AA)
        y += int(text_h * 0.22)
    return img


def _whole(value: float) -> str:
    if not math.isfinite(value):
        return "--"
    return str(int(value))


def encode_jpeg(img: np.ndarray, quality: int = 85) -> bytes:
    ok, buf = cv2.imencode(".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise RuntimeError("JPEG encoding failed")
    return buf.tobytes()
