from __future__ import annotations

import os
import tempfile
from typing import IO, Iterable, List, Optional

from PIL import GifImagePlugin, Image

from mandelgif.errors import EncodeError, SinkInitError
from mandelgif.frames import FrameBuffer
from mandelgif.util.logging_setup import get_logger


def frame_delay(framerate: float) -> int:
    """Per-frame display time in centiseconds."""
    if framerate <= 0:
        raise ValueError("framerate must be > 0")
    return int(round(100.0 / framerate))


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _palette_image(frame: FrameBuffer) -> Image.Image:
    return frame.to_image().convert("RGB").quantize(colors=256)


class Animation:
    """
    An animated GIF under construction.

    The destination is opened up front as a temporary file next to `path`.
    Frames are collected in index order and encoded in one sequential pass
    by write_animation(), which renames the finished file onto `path`. A run
    that fails or is discarded leaves nothing at `path`.
    """

    def __init__(self, path: str, width: int, height: int, framerate: float, *, loop: Optional[int] = None):
        self.path = os.fspath(path)
        self.width = int(width)
        self.height = int(height)
        self.delay = frame_delay(framerate)
        self.loop = loop
        self._frames: List[Optional[FrameBuffer]] = []
        self._finished = False

        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, self._tmp_path = tempfile.mkstemp(prefix=".mandelgif-", suffix=".gif.part", dir=directory)
        except OSError as e:
            raise SinkInitError(f"Cannot create output file {self.path}: {e}") from e
        self._file: Optional[IO[bytes]] = os.fdopen(fd, "wb")

    def __len__(self) -> int:
        return len(self._frames)

    def __enter__(self) -> "Animation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._finished:
            self.discard()

    @property
    def finished(self) -> bool:
        return self._finished

    def add_frames(self, frames: Iterable[FrameBuffer]) -> None:
        self._check_open()
        self._frames.extend(frames)

    def set_frame(self, index: int, frame: FrameBuffer) -> None:
        self._check_open()
        if index < 0:
            raise IndexError(f"Frame index must be non-negative, got {index}")
        if index >= len(self._frames):
            self._frames.extend([None] * (index + 1 - len(self._frames)))
        self._frames[index] = frame

    def _check_open(self) -> None:
        if self._finished:
            raise RuntimeError("Animation has already been written or discarded.")

    def _validated_frames(self) -> List[FrameBuffer]:
        if not self._frames:
            raise EncodeError("Animation has no frames.")
        frames: List[FrameBuffer] = []
        for i, frame in enumerate(self._frames):
            if frame is None:
                raise EncodeError(f"Frame {i} is missing; refusing to write a partial animation.")
            if frame.size != (self.width, self.height):
                raise EncodeError(
                    f"Frame {i} is {frame.width}x{frame.height}, animation is {self.width}x{self.height}."
                )
            frames.append(frame)
        return frames

    def _encode(self, frames: List[FrameBuffer]) -> None:
        # Frames go out one by one so identical neighbours stay separate frames.
        # Each carries its own colour table; Pillow takes milliseconds and stores centiseconds.
        header_info = {"duration": self.delay * 10}
        if self.loop is not None:
            header_info["loop"] = self.loop
        for i, frame in enumerate(frames):
            im = _palette_image(frame)
            if i == 0:
                header, _ = GifImagePlugin.getheader(im, info=header_info)
                for block in header:
                    self._file.write(block)
            for block in GifImagePlugin.getdata(im, duration=self.delay * 10, include_color_table=True):
                self._file.write(block)
        self._file.write(b";")

    def write_animation(self) -> str:
        """Encode every frame with the shared delay and move the file into place."""
        self._check_open()
        logger = get_logger()
        try:
            frames = self._validated_frames()
            logger.info("Encoding %s frames %sx%s delay=%scs -> %s",
                        len(frames), self.width, self.height, self.delay, self.path)
            try:
                self._encode(frames)
                self._file.close()
                self._file = None
                os.chmod(self._tmp_path, 0o666 & ~_current_umask())
                os.replace(self._tmp_path, self.path)
            except (OSError, ValueError, TypeError) as e:
                raise EncodeError(f"Failed to encode animation {self.path}: {e}") from e
        except BaseException:
            self.discard()
            raise

        self._finished = True
        logger.info("Animation written: %s", self.path)
        return self.path

    def discard(self) -> None:
        """Drop the collected frames and remove the temporary file."""
        self._finished = True
        self._frames = []
        if self._file is not None:
            self._file.close()
            self._file = None
        if os.path.exists(self._tmp_path):
            os.remove(self._tmp_path)
