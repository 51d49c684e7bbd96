from __future__ import annotations

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, Executor, Future, ProcessPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from mandelgif.errors import RenderTaskFailure
from mandelgif.frames import FrameBuffer
from mandelgif.keyframes import Keyframe
from mandelgif.renderers.escape_time import ESCAPE_RADIUS_SQUARED, MAX_ITER, render_frame
from mandelgif.util.logging_setup import get_logger, logging_initialiser

RenderTask = Callable[..., FrameBuffer]
ExecutorFactory = Callable[[Optional[int]], Executor]


def _render_task(index: int, viewport: Keyframe, width: int, height: int, max_iter: int,
                 escape_radius_squared: float) -> FrameBuffer:
    logger = get_logger()
    logger.debug("[Frame %06d] render start center=(%s,%s) size=(%s,%s)",
                 index, viewport.x_center, viewport.y_center, viewport.x_size, viewport.y_size)
    frame = render_frame(width, height, viewport, max_iter=max_iter, escape_radius_squared=escape_radius_squared)
    if frame.size != (width, height):
        raise ValueError(f"Frame {index} rendered as {frame.size}, expected {(width, height)}.")
    logger.debug("[Frame %06d] render done", index)
    return frame


def default_worker_count() -> int:
    return os.cpu_count() or 1


def _process_pool_factory(log_queue, log_level: int) -> ExecutorFactory:
    def factory(max_workers: Optional[int]) -> Executor:
        if log_queue is None:
            return ProcessPoolExecutor(max_workers=max_workers)
        return ProcessPoolExecutor(
            max_workers=max_workers,
            initializer=logging_initialiser,
            initargs=(log_queue, log_level),
        )
    return factory


def render_frames(
    viewports: Sequence[Keyframe],
    *,
    width: int,
    height: int,
    max_iter: int = MAX_ITER,
    escape_radius_squared: float = ESCAPE_RADIUS_SQUARED,
    max_workers: Optional[int] = None,
    executor_factory: Optional[ExecutorFactory] = None,
    render_task: Optional[RenderTask] = None,
    log_queue=None,
    log_level: int = logging.INFO,
    progress: bool = False,
) -> List[FrameBuffer]:
    """
    Render one FrameBuffer per viewport on a worker pool.

    Every frame is an independent task; its result is stored in the slot of
    its position in `viewports`, so the returned list follows viewport order
    whatever order the workers finish in. The first failing task cancels the
    pending ones and is raised as RenderTaskFailure once the pool has joined.
    """
    logger = get_logger()
    total = len(viewports)
    if total == 0:
        return []

    workers = max_workers or default_worker_count()
    factory = executor_factory or _process_pool_factory(log_queue, log_level)
    task = render_task or _render_task

    slots: List[Optional[FrameBuffer]] = [None] * total
    logger.info("Rendering %s frames %sx%s on %s workers (max_iter=%s)", total, width, height, workers, max_iter)

    with factory(workers) as pool:
        futures: List[Future] = [
            pool.submit(task, index, viewport, width, height, max_iter, escape_radius_squared)
            for index, viewport in enumerate(viewports)
        ]
        bar = tqdm(total=total, desc="frames", unit="frame", disable=not progress)
        try:
            for future in futures:
                future.add_done_callback(lambda _f: bar.update(1))
            _, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
        finally:
            bar.close()

    # Join barrier: the pool has shut down, every task has either finished or been cancelled.
    for index, future in enumerate(futures):
        if future.cancelled():
            continue
        exc = future.exception()
        if exc is not None:
            logger.error("[Frame %06d] render failed: %s", index, exc)
            raise RenderTaskFailure(index, f"Render task for frame {index} failed: {exc}") from exc
        slots[index] = future.result()

    missing = [i for i, frame in enumerate(slots) if frame is None]
    if missing:
        raise RenderTaskFailure(missing[0], f"No frame produced for index {missing[0]}.")

    logger.info("Rendered %s frames", total)
    return slots  # type: ignore[return-value]
