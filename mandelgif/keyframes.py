from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from mandelgif.errors import ConfigurationError


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


@dataclass(frozen=True)
class Keyframe:
    """
    A viewport of the complex plane centred at (x_center, y_center) and
    spanning x_size by y_size, pinned to output frame `index`.

    Interpolated keyframes double as the per-frame viewport.
    """
    x_center: float
    y_center: float
    x_size: float
    y_size: float
    index: int = 0

    def interpolate(self, other: "Keyframe", idx: int) -> "Keyframe":
        if other.index == self.index:
            raise ConfigurationError(
                f"Cannot interpolate between keyframes sharing index {self.index}."
            )
        t = (idx - self.index) / (other.index - self.index)
        return Keyframe(
            x_center=_lerp(self.x_center, other.x_center, t),
            y_center=_lerp(self.y_center, other.y_center, t),
            x_size=_lerp(self.x_size, other.x_size, t),
            y_size=_lerp(self.y_size, other.y_size, t),
            index=idx,
        )

    def get_coordinate(self, x: int, y: int, width: int, height: int) -> Tuple[float, float]:
        """Map pixel (x, y) to the complex plane. Row 0 is the top (+y) edge."""
        x_offset = self.x_center - self.x_size / 2.0
        cx = (x / width) * self.x_size + x_offset

        y_offset = self.y_center + self.y_size / 2.0
        cy = y_offset - (y / height) * self.y_size

        return cx, cy


def validate_keyframes(keyframes: Sequence[Keyframe]) -> None:
    if len(keyframes) < 2:
        raise ConfigurationError(f"At least 2 keyframes are required, got {len(keyframes)}.")
    for k in keyframes:
        if k.index < 0:
            raise ConfigurationError(f"Keyframe index must be non-negative, got {k.index}.")
    for a, b in zip(keyframes, keyframes[1:]):
        if b.index <= a.index:
            raise ConfigurationError(
                f"Keyframe indices must be strictly increasing, got {a.index} then {b.index}."
            )


def frame_count(keyframes: Sequence[Keyframe]) -> int:
    return sum(b.index - a.index for a, b in zip(keyframes, keyframes[1:]))


def get_interpolated_frames(keyframes: Sequence[Keyframe]) -> List[Keyframe]:
    """
    Expand keyframes into one viewport per index in [first.index, last.index).

    Each consecutive pair is a half-open window, so the last keyframe is never
    emitted on its own.
    """
    validate_keyframes(keyframes)
    frames: List[Keyframe] = []
    for start, end in zip(keyframes, keyframes[1:]):
        for idx in range(start.index, end.index):
            frames.append(start.interpolate(end, idx))
    return frames
