from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from mandelgif.frames import FrameBuffer
from mandelgif.keyframes import Keyframe


def solid_frame(width: int, height: int, rgb) -> FrameBuffer:
    buf = np.empty((height, width, 4), dtype=np.uint8)
    buf[..., :3] = rgb
    buf[..., 3] = 255
    return FrameBuffer(buf)


@pytest.fixture()
def thread_pool():
    return lambda max_workers: ThreadPoolExecutor(max_workers=max_workers)


@pytest.fixture()
def zoom_keyframes() -> list[Keyframe]:
    return [
        Keyframe(x_center=-0.75, y_center=0.0, x_size=3.5, y_size=3.5, index=0),
        Keyframe(x_center=-1.35, y_center=0.0, x_size=0.2, y_size=0.2, index=100),
        Keyframe(x_center=-0.75, y_center=0.0, x_size=3.5, y_size=3.5, index=300),
    ]


@pytest.fixture()
def make_frame():
    return solid_frame
