from __future__ import annotations

import argparse
import logging
import time
from typing import Optional

from mandelgif.config import load_config, normalise_config
from mandelgif.errors import MandelgifError
from mandelgif.pipeline import render_animation
from mandelgif.util.logging_setup import get_logger, render_logging
from mandelgif.util.manifest import build_manifest, manifest_path_for, write_manifest

def _worker_count(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"worker count must be >= 1, got {n}")
    return n

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelgif", description="Render a keyframed Mandelbrot zoom into an animated GIF.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Rotating log file path. Empty disables file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render the animation.")
    r.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, renders the built-in zoom.")
    r.add_argument("--output", "-o", type=str, default="anim.gif", help="Output GIF path.")
    r.add_argument("--workers", type=_worker_count, default=None, help="Worker processes (defaults to CPU count).")
    r.add_argument("--progress", action="store_true", help="Show a progress bar while frames render.")
    r.add_argument("--no-manifest", action="store_true", help="Do not write <output>.run.json.")

    return p

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file.strip() or None

    with render_logging(level=log_level, log_file=log_file) as queue:
        logger = get_logger()
        try:
            if args.cmd == "render":
                started = time.time()
                cfg = normalise_config(load_config(args.config))
                result = render_animation(
                    cfg=cfg,
                    output=args.output,
                    max_workers=args.workers,
                    log_queue=queue,
                    log_level=log_level,
                    progress=args.progress,
                )
                if not args.no_manifest:
                    path = manifest_path_for(args.output)
                    write_manifest(path, build_manifest(config=cfg.to_dict(), result=result, started=started))
                    logger.info("Run manifest written: %s", path)
                return 0

            raise RuntimeError("Unknown command.")
        except (MandelgifError, OSError) as e:
            logger.error("Render failed: %s", e)
            return 1

if __name__ == "__main__":
    raise SystemExit(main())
