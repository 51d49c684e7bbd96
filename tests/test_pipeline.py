import json

import pytest
from PIL import Image

from mandelgif import cli
from mandelgif.config import load_config, normalise_config
from mandelgif.errors import ConfigurationError, RenderTaskFailure
from mandelgif.pipeline import render_animation
from mandelgif.renderers import parallel

SMALL = {
    "width": 16,
    "height": 12,
    "framerate": 24,
    "max_iterations": 64,
    "keyframes": [
        {"x_center": -0.75, "y_center": 0.0, "x_size": 3.5, "y_size": 3.5, "index": 0},
        {"x_center": -1.35, "y_center": 0.0, "x_size": 0.2, "y_size": 0.2, "index": 4},
    ],
}


def test_render_small_animation(tmp_path, thread_pool):
    out = tmp_path / "zoom.gif"
    result = render_animation(cfg=normalise_config(SMALL), output=str(out), executor_factory=thread_pool)

    assert result["frames"] == 4
    assert result["delay_cs"] == 4
    with Image.open(out) as img:
        assert img.size == (16, 12)
        assert img.n_frames == 4
        assert img.info["duration"] == 40


def test_default_scenario_frame_sequence(tmp_path, thread_pool, make_frame, monkeypatch):
    # Stand in for the escape-time work so the full 500x500, 300 frame run stays fast.
    def task(index, viewport, width, height, max_iter, escape_radius_squared):
        assert viewport.index == index
        return make_frame(width, height, (index % 256, index // 256, 7))

    monkeypatch.setattr(parallel, "_render_task", task)
    out = tmp_path / "anim.gif"
    result = render_animation(cfg=normalise_config(load_config(None)), output=str(out),
                              max_workers=8, executor_factory=thread_pool)

    assert result["frames"] == 300
    assert result["delay_cs"] == 4
    with Image.open(out) as img:
        assert img.size == (500, 500)
        assert img.n_frames == 300
        for i in (0, 150, 299):
            img.seek(i)
            assert img.info["duration"] == 40
            assert img.convert("RGB").getpixel((250, 250)) == (i % 256, i // 256, 7)


def test_held_viewport_keeps_every_frame(tmp_path, thread_pool):
    wide = {"x_center": -0.75, "y_center": 0.0, "x_size": 3.5, "y_size": 3.5}
    cfg = normalise_config({
        "width": 8,
        "height": 8,
        "framerate": 24,
        "keyframes": [
            dict(wide, index=0),
            dict(wide, index=3),
            dict(wide, x_size=1.0, y_size=1.0, index=5),
        ],
    })
    out = tmp_path / "hold.gif"
    result = render_animation(cfg=cfg, output=str(out), executor_factory=thread_pool)

    assert result["frames"] == 5
    with Image.open(out) as img:
        assert img.n_frames == result["frames"]
        for i in range(img.n_frames):
            img.seek(i)
            assert img.info["duration"] == 40


def test_task_failure_leaves_no_output(tmp_path, thread_pool, monkeypatch):
    def task(index, viewport, width, height, max_iter, escape_radius_squared):
        raise AssertionError("buffer size mismatch")

    monkeypatch.setattr(parallel, "_render_task", task)
    out = tmp_path / "zoom.gif"
    with pytest.raises(RenderTaskFailure):
        render_animation(cfg=normalise_config(SMALL), output=str(out), executor_factory=thread_pool)
    assert list(tmp_path.iterdir()) == []


def test_degenerate_keyframes_fail_before_rendering():
    raw = dict(SMALL)
    raw["keyframes"] = [dict(SMALL["keyframes"][0], index=5), dict(SMALL["keyframes"][1], index=5)]
    with pytest.raises(ConfigurationError):
        normalise_config(raw)


def test_cli_render(tmp_path):
    config_path = tmp_path / "small.json"
    config_path.write_text(json.dumps(SMALL), encoding="utf-8")
    out = tmp_path / "cli.gif"

    code = cli.main(["render", "--config", str(config_path), "--output", str(out), "--workers", "2"])

    assert code == 0
    with Image.open(out) as img:
        assert img.n_frames == 4
    manifest = json.loads((tmp_path / "cli.gif.run.json").read_text(encoding="utf-8"))
    assert manifest["result"]["frames"] == 4
    assert manifest["config"]["width"] == 16


def test_cli_reports_bad_config(tmp_path):
    raw = dict(SMALL)
    raw["keyframes"] = [SMALL["keyframes"][0]]
    config_path = tmp_path / "bad.json"
    config_path.write_text(json.dumps(raw), encoding="utf-8")
    out = tmp_path / "never.gif"

    assert cli.main(["render", "--config", str(config_path), "--output", str(out)]) == 1
    assert not out.exists()


@pytest.mark.parametrize("workers", ["0", "-1", "many"])
def test_cli_rejects_bad_worker_count(tmp_path, workers):
    with pytest.raises(SystemExit) as exc:
        cli.main(["render", "--output", str(tmp_path / "never.gif"), "--workers", workers])
    assert exc.value.code == 2
    assert not (tmp_path / "never.gif").exists()


def test_cli_reports_non_utf8_config(tmp_path):
    config_path = tmp_path / "latin1.json"
    config_path.write_bytes(b"\xff\xfe{}")
    out = tmp_path / "never.gif"

    assert cli.main(["render", "--config", str(config_path), "--output", str(out)]) == 1
    assert not out.exists()
