import contextlib
import logging
import logging.handlers
import multiprocessing as mp
from typing import Iterator, Optional

_LOGGER_NAME = "mandelgif"

_FORMAT = "%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"

def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)

def _own_logger(level: int) -> logging.Logger:
    # The package logger keeps its own handlers so render output never doubles up through root.
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    return logger

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 3,
) -> logging.Logger:
    logger = _own_logger(level)
    handlers: list = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger

@contextlib.contextmanager
def render_logging(*, level: int = logging.INFO, log_file: Optional[str] = None) -> Iterator[mp.Queue]:
    """
    Set up parent-side logging for a render run and yield the queue frame
    workers should log into. The listener is drained and stopped on exit.
    """
    logger = configure_root_logging(level=level, console=True, log_file=log_file)
    queue: mp.Queue = mp.Queue(-1)
    listener = logging.handlers.QueueListener(queue, *logger.handlers, respect_handler_level=True)
    listener.start()
    try:
        yield queue
    finally:
        listener.stop()

def logging_initialiser(queue: mp.Queue, level: int) -> None:
    """ProcessPoolExecutor initializer: frame workers log through the parent's queue."""
    logger = _own_logger(level)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)
