from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from mandelgif.config import RenderConfig
from mandelgif.keyframes import frame_count, get_interpolated_frames
from mandelgif.renderers.parallel import ExecutorFactory, render_frames
from mandelgif.util.logging_setup import get_logger
from mandelgif.video.gif_writer import Animation

def render_animation(
    *,
    cfg: RenderConfig,
    output: str,
    max_workers: Optional[int] = None,
    executor_factory: Optional[ExecutorFactory] = None,
    log_queue=None,
    log_level: int = logging.INFO,
    progress: bool = False,
) -> Dict[str, Any]:
    """
    Render the keyframed zoom described by `cfg` into an animated GIF at `output`.

    Keyframes are expanded and the output is opened before any frame is
    rendered. Encoding starts only after every frame has rendered, and any
    error leaves no file at `output`.
    """
    logger = get_logger()
    started = time.time()

    viewports = get_interpolated_frames(cfg.keyframes)
    logger.info("Render start frames=%s size=%sx%s framerate=%s max_iter=%s keyframes=%s",
                frame_count(cfg.keyframes), cfg.width, cfg.height, cfg.framerate, cfg.max_iterations, len(cfg.keyframes))

    with Animation(output, cfg.width, cfg.height, cfg.framerate, loop=cfg.loop) as animation:
        frames = render_frames(
            viewports,
            width=cfg.width,
            height=cfg.height,
            max_iter=cfg.max_iterations,
            escape_radius_squared=cfg.escape_radius_squared,
            max_workers=max_workers,
            executor_factory=executor_factory,
            log_queue=log_queue,
            log_level=log_level,
            progress=progress,
        )
        animation.add_frames(frames)
        animation.write_animation()

    elapsed = time.time() - started
    logger.info("Render complete output=%s frames=%s delay=%scs time=%.2fs",
                output, len(frames), animation.delay, elapsed)
    return {
        "output": output,
        "frames": len(frames),
        "width": cfg.width,
        "height": cfg.height,
        "delay_cs": animation.delay,
        "elapsed_s": round(elapsed, 3),
    }
