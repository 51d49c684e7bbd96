import copy
import json

import pytest

from mandelgif.config import DEFAULT_CONFIG, load_config, normalise_config
from mandelgif.errors import ConfigurationError
from mandelgif.keyframes import Keyframe


def test_default_config():
    cfg = normalise_config(load_config(None))
    assert (cfg.width, cfg.height, cfg.framerate) == (500, 500, 24.0)
    assert cfg.max_iterations == 255
    assert cfg.escape_radius_squared == 8192.0
    assert cfg.loop is None
    assert [k.index for k in cfg.keyframes] == [0, 100, 300]
    assert cfg.keyframes[1] == Keyframe(-1.35, 0.0, 0.2, 0.2, 100)


def test_load_config_returns_a_copy():
    cfg = load_config(None)
    cfg["keyframes"].append({})
    assert len(DEFAULT_CONFIG["keyframes"]) == 3


def test_load_json(tmp_path):
    raw = copy.deepcopy(DEFAULT_CONFIG)
    raw.update(width=64, height=48, framerate=12, loop=0)
    path = tmp_path / "zoom.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    cfg = normalise_config(load_config(str(path)))
    assert (cfg.width, cfg.height, cfg.framerate, cfg.loop) == (64, 48, 12.0, 0)


def test_non_object_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{width: ", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_config_not_utf8(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b"\xff\xfe{\"width\": 8}")
    with pytest.raises(ConfigurationError, match="UTF-8"):
        load_config(str(path))


@pytest.mark.parametrize("field", ["width", "height", "framerate", "keyframes"])
def test_missing_required_field(field):
    raw = copy.deepcopy(DEFAULT_CONFIG)
    del raw[field]
    with pytest.raises(ConfigurationError, match=field):
        normalise_config(raw)


@pytest.mark.parametrize(
    "override",
    [
        {"width": 0},
        {"height": -3},
        {"framerate": 0},
        {"max_iterations": 0},
        {"escape_radius_squared": 1.0},
        {"loop": -1},
        {"width": "wide"},
        {"keyframes": "none"},
    ],
)
def test_invalid_values(override):
    raw = copy.deepcopy(DEFAULT_CONFIG)
    raw.update(override)
    with pytest.raises(ConfigurationError):
        normalise_config(raw)


def test_duplicate_keyframe_index():
    raw = copy.deepcopy(DEFAULT_CONFIG)
    frame = {"x_center": 0.0, "y_center": 0.0, "x_size": 1.0, "y_size": 1.0, "index": 5}
    raw["keyframes"] = [frame, dict(frame)]
    with pytest.raises(ConfigurationError):
        normalise_config(raw)


@pytest.mark.parametrize("index", [1.5, True, "2", None])
def test_keyframe_index_must_be_integral(index):
    raw = copy.deepcopy(DEFAULT_CONFIG)
    raw["keyframes"][1]["index"] = index
    with pytest.raises(ConfigurationError, match="index"):
        normalise_config(raw)


def test_keyframe_index_accepts_whole_float():
    raw = copy.deepcopy(DEFAULT_CONFIG)
    raw["keyframes"][1]["index"] = 100.0
    cfg = normalise_config(raw)
    assert cfg.keyframes[1].index == 100
    assert isinstance(cfg.keyframes[1].index, int)


def test_keyframe_missing_field():
    raw = copy.deepcopy(DEFAULT_CONFIG)
    del raw["keyframes"][1]["x_size"]
    with pytest.raises(ConfigurationError, match="x_size"):
        normalise_config(raw)


def test_to_dict_round_trip():
    cfg = normalise_config(load_config(None))
    assert normalise_config(cfg.to_dict()) == cfg
