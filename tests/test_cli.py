from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from nanobanana import __version__
from nanobanana.cli import main


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("GEMINI_API_KEY", "NANOBANANA_API_KEY", "GOOGLE_API_KEY", "NANOBANANA_MODEL", "NANOBANANA_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NANOBANANA_CONFIG", str(tmp_path / "no-config.toml"))
    monkeypatch.chdir(tmp_path)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return int(excinfo.value.code)


def _run_json(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, dict]:
    code = _run([*argv, "--json"])
    return code, json.loads(capsys.readouterr().out)


def _png(path: Path, size=(40, 20), color=(255, 255, 255)) -> Path:
    Image.new("RGB", size, color).save(path)
    return path


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run([]) == 1
    assert "usage: nanobanana" in capsys.readouterr().out


def test_version_json(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["version"], capsys)
    assert code == 0
    assert payload["data"]["version"] == __version__


def test_transform_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "in.png", size=(100, 50))
    out = tmp_path / "out.webp"
    code, payload = _run_json(["transform", str(source), "-o", str(out), "--resize", "20x20", "--fit", "cover"], capsys)
    assert code == 0
    assert payload["command"] == "transform"
    assert payload["data"]["image"] == {"path": str(out), "format": "webp", "size": {"width": 20, "height": 20}}
    assert payload["data"]["operations"]["fit"] == "cover"
    assert "total_ms" in payload["timing"]


def test_transform_without_operation_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "in.png")
    code, payload = _run_json(["transform", str(source), "-o", str(tmp_path / "out.png")], capsys)
    assert code == 1
    assert payload["success"] is False
    assert payload["error"]["code"] == "NO_OPERATION"
    assert not (tmp_path / "out.png").exists()


def test_text_mode_error_goes_to_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(["transform", str(tmp_path / "missing.png"), "-o", "out.png", "--flip", "--no-color"])
    captured = capsys.readouterr()
    assert code == 1
    assert "Error: [FILE_NOT_FOUND]" in captured.err


def test_combine_expands_globs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    frames = tmp_path / "frames"
    frames.mkdir()
    for idx in range(3):
        _png(frames / f"f{idx}.png", size=(10, 10))
    out = tmp_path / "sheet.png"
    code, payload = _run_json(
        ["combine", str(frames / "*.png"), "-o", str(out), "--direction", "grid", "--gap", "2"],
        capsys,
    )
    assert code == 0
    assert payload["data"]["inputs"] == sorted(str(p) for p in frames.glob("*.png"))
    assert payload["data"]["image"]["size"] == {"width": 22, "height": 22}


def test_combine_error_cases(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    single = _png(tmp_path / "one.png")
    code, payload = _run_json(["combine", str(single), "-o", "out.png"], capsys)
    assert (code, payload["error"]["code"]) == (1, "NOT_ENOUGH_IMAGES")

    code, payload = _run_json(["combine", str(single), "missing.png", "-o", "out.png"], capsys)
    assert (code, payload["error"]["code"]) == (1, "FILE_NOT_FOUND")

    code, payload = _run_json(["combine", str(single), str(single), "-o", "out.png", "--direction", "diag"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_DIRECTION")


def test_transparent_make_default_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "logo.png")
    code, payload = _run_json(["transparent", "make", str(source)], capsys)
    assert code == 0
    assert payload["command"] == "transparent make"
    assert payload["data"]["output"] == str(tmp_path / "logo_transparent.png")
    assert payload["data"]["options"] == {"color": "white", "tolerance": 10.0}
    with Image.open(tmp_path / "logo_transparent.png") as saved:
        assert saved.getpixel((0, 0))[3] == 0


def test_transparent_make_invalid_tolerance(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "logo.png")
    code, payload = _run_json(["transparent", "make", str(source), "--tolerance", "150"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_TOLERANCE")


def test_transparent_inspect_text_and_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "logo.png")
    assert _run(["transparent", "inspect", str(source)]) == 0
    text = capsys.readouterr().out
    assert "Has Alpha Channel:   false" in text
    assert "Dominant Background: white" in text

    code, payload = _run_json(["transparent", "inspect", str(source)], capsys)
    assert code == 0
    assert payload["data"]["results"]["has_alpha_channel"] is False
    assert payload["data"]["results"]["format"] == "png"


def test_generate_dryrun_multiple_images(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "cat.png"
    code, payload = _run_json(["generate", "a", "cat", "-o", str(out), "-m", "dryrun", "-c", "2"], capsys)
    assert code == 0
    assert payload["data"]["prompt"] == "a cat"
    assert payload["data"]["model"] == "dryrun"
    paths = [image["path"] for image in payload["data"]["images"]]
    assert paths == [str(tmp_path / "cat_1.png"), str(tmp_path / "cat_2.png")]
    assert payload["data"]["images"][0]["size"] == {"width": 1024, "height": 1024}
    assert payload["timing"]["api_call_ms"] == 0


def test_generate_edit_dryrun(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "in.png", size=(64, 48))
    out = tmp_path / "edited.png"
    code, payload = _run_json(["generate", "add", "a", "hat", "-i", str(source), "-o", str(out), "-m", "dryrun"], capsys)
    assert code == 0
    assert payload["data"]["images"][0]["size"] == {"width": 64, "height": 48}
    assert out.is_file()


@pytest.mark.parametrize(
    ("extra", "expected"),
    [
        (["-c", "11"], "INVALID_COUNT"),
        (["--aspect-ratio", "2:1"], "INVALID_ASPECT_RATIO"),
        (["--resolution", "8K"], "INVALID_RESOLUTION"),
        (["--resolution", "4K"], "INVALID_RESOLUTION"),
        (["-i", "missing.png"], "FILE_NOT_FOUND"),
    ],
)
def test_generate_validation(extra: list[str], expected: str, capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["generate", "cat", "-o", "cat.png", "-m", "dryrun", *extra], capsys)
    assert (code, payload["error"]["code"]) == (1, expected)


def test_generate_no_overwrite(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    existing = _png(tmp_path / "cat.png")
    code, payload = _run_json(["generate", "cat", "-o", str(existing), "-m", "dryrun", "--no-overwrite"], capsys)
    assert (code, payload["error"]["code"]) == (1, "FILE_EXISTS")


def test_generate_requires_api_key_for_gemini(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["generate", "cat", "-o", "cat.png"], capsys)
    assert (code, payload["error"]["code"]) == (1, "MISSING_API_KEY")


def test_icon_dryrun_writes_each_size(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out_dir = tmp_path / "icons"
    code, payload = _run_json(["icon", "rocket", "-o", str(out_dir), "--sizes", "16,32", "-m", "dryrun"], capsys)
    assert code == 0
    assert payload["data"]["sizes"] == [16, 32]
    for size in (16, 32):
        with Image.open(out_dir / f"icon_{size}.png") as icon:
            assert icon.size == (size, size)
    assert not (out_dir / "_temp_base.png").exists()


def test_icon_size_pattern(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    pattern = tmp_path / "assets" / "app-{size}.png"
    code, _ = _run_json(["icon", "rocket", "-o", str(pattern), "--sizes", "48", "-m", "dryrun"], capsys)
    assert code == 0
    assert (tmp_path / "assets" / "app-48.png").is_file()


def test_icon_validation(capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["icon", "rocket", "-o", "icons", "--sizes", "8", "-m", "dryrun"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_SIZE")
    code, payload = _run_json(["icon", "rocket", "-o", "icons", "--style", "neon", "-m", "dryrun"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_STYLE")


def test_pattern_dryrun_resizes_to_exact_size(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "tile.png"
    code, payload = _run_json(
        ["pattern", "hexagons", "-o", str(out), "--size", "256x128", "--style", "geometric", "-m", "dryrun"],
        capsys,
    )
    assert code == 0
    assert payload["data"]["image"]["size"] == {"width": 256, "height": 128}
    with Image.open(out) as tile:
        assert tile.size == (256, 128)


@pytest.mark.parametrize(
    ("extra", "expected"),
    [
        (["--size", "big"], "INVALID_SIZE"),
        (["--size", "32x32"], "INVALID_SIZE"),
        (["--type", "mosaic"], "INVALID_TYPE"),
        (["--style", "baroque"], "INVALID_STYLE"),
    ],
)
def test_pattern_validation(extra: list[str], expected: str, capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["pattern", "waves", "-o", "tile.png", "-m", "dryrun", *extra], capsys)
    assert (code, payload["error"]["code"]) == (1, expected)


def test_pattern_unknown_extension_leaves_no_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, payload = _run_json(["pattern", "stripes", "-o", "tile.nope", "-m", "dryrun"], capsys)
    assert (code, payload["error"]["code"]) == (1, "SAVE_FAILED")
    assert sorted(p.name for p in tmp_path.iterdir()) == []


def test_pattern_removes_raw_tile(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, _ = _run_json(["pattern", "stripes", "-o", "tile.png", "-m", "dryrun"], capsys)
    assert code == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["tile.png"]


def test_transform_rejects_nan_rotation(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "in.png")
    code, payload = _run_json(["transform", str(source), "--rotate", "nan", "-o", "out.png"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_ROTATION")
    assert not (tmp_path / "out.png").exists()


def test_transparent_make_rejects_nan_tolerance(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _png(tmp_path / "logo.png")
    code, payload = _run_json(["transparent", "make", str(source), "--tolerance", "nan"], capsys)
    assert (code, payload["error"]["code"]) == (1, "INVALID_TOLERANCE")
    assert not (tmp_path / "logo_transparent.png").exists()
