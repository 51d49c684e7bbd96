import copy
import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from mandelgif.errors import ConfigurationError
from mandelgif.keyframes import Keyframe, validate_keyframes

DEFAULT_CONFIG: Dict[str, Any] = {
    "width": 500,
    "height": 500,
    "framerate": 24.0,
    "max_iterations": 255,
    "escape_radius_squared": 8192.0,
    "loop": None,
    "keyframes": [
        {"x_center": -0.75, "y_center": 0.0, "x_size": 3.5, "y_size": 3.5, "index": 0},
        {"x_center": -1.35, "y_center": 0.0, "x_size": 0.2, "y_size": 0.2, "index": 100},
        {"x_center": -0.75, "y_center": 0.0, "x_size": 3.5, "y_size": 3.5, "index": 300},
    ],
}

_KEYFRAME_FIELDS = ("x_center", "y_center", "x_size", "y_size", "index")


@dataclass(frozen=True)
class RenderConfig:
    width: int
    height: int
    framerate: float
    keyframes: Tuple[Keyframe, ...]
    max_iterations: int = 255
    escape_radius_squared: float = 8192.0
    loop: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["keyframes"] = [asdict(k) for k in self.keyframes]
        return out


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Config {config_path} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config {config_path} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigurationError("Config JSON must be an object.")
    return cfg


def _parse_index(raw: Any, position: int) -> int:
    # JSON numbers such as 3.0 are fine; fractions and booleans are not frame indices.
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigurationError(f"keyframes[{position}].index must be an integer, got {raw!r}.")
    if isinstance(raw, float) and not raw.is_integer():
        raise ConfigurationError(f"keyframes[{position}].index must be an integer, got {raw!r}.")
    return int(raw)


def _parse_keyframe(raw: Any, position: int) -> Keyframe:
    if isinstance(raw, Keyframe):
        return raw
    if not isinstance(raw, dict):
        raise ConfigurationError(f"keyframes[{position}] must be an object.")
    missing = [k for k in _KEYFRAME_FIELDS if k not in raw]
    if missing:
        raise ConfigurationError(f"keyframes[{position}] is missing {', '.join(missing)}.")
    try:
        return Keyframe(
            x_center=float(raw["x_center"]),
            y_center=float(raw["y_center"]),
            x_size=float(raw["x_size"]),
            y_size=float(raw["y_size"]),
            index=_parse_index(raw["index"], position),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"keyframes[{position}] has a non-numeric field: {e}") from e


def normalise_config(cfg: Dict[str, Any]) -> RenderConfig:
    required = ["width", "height", "framerate", "keyframes"]
    for r in required:
        if r not in cfg:
            raise ConfigurationError(f"Missing config field: {r}")

    try:
        width = int(cfg["width"])
        height = int(cfg["height"])
        framerate = float(cfg["framerate"])
        max_iterations = int(cfg.get("max_iterations", 255))
        escape_radius_squared = float(cfg.get("escape_radius_squared", 8192.0))
        loop = cfg.get("loop")
        loop = None if loop is None else int(loop)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid config value: {e}") from e

    if width <= 0 or height <= 0:
        raise ConfigurationError("width/height must be positive.")
    if framerate <= 0:
        raise ConfigurationError("framerate must be positive.")
    if max_iterations < 1:
        raise ConfigurationError("max_iterations must be at least 1.")
    # The smooth colouring takes log2(log2(|z|^2) / 2), defined only for |z|^2 > 1.
    if escape_radius_squared < 4.0:
        raise ConfigurationError("escape_radius_squared must be at least 4.")
    if loop is not None and loop < 0:
        raise ConfigurationError("loop must be >= 0 or null.")

    raw_keyframes = cfg["keyframes"]
    if not isinstance(raw_keyframes, (list, tuple)):
        raise ConfigurationError("keyframes must be a list.")
    keyframes: List[Keyframe] = [_parse_keyframe(k, i) for i, k in enumerate(raw_keyframes)]
    validate_keyframes(keyframes)

    return RenderConfig(
        width=width,
        height=height,
        framerate=framerate,
        keyframes=tuple(keyframes),
        max_iterations=max_iterations,
        escape_radius_squared=escape_radius_squared,
        loop=loop,
    )
