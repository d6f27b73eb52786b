"""Tests for the favicons task: file groups, execution order, HTML/manifest, cleanup."""

import json
import os

import pytest

from favicons.config.loader import FaviconOptions, FileGroup, TaskConfig
from favicons.core.errors import ImageMagickNotFound, SourceNotFound
from favicons.core.magick import ImageMagick
from favicons.core.planner import IconPlanner
from favicons.core.task import FaviconsTask, expand_sources

from favicons.tests.conftest import FakeConvert


def _config(source_dir, dest, **options):
    return TaskConfig(
        options=FaviconOptions.from_mapping(options),
        files=[FileGroup(src=[str(source_dir / "logo.png")], dest=str(dest))],
    )


def _regular_only(**extra):
    opts = {"regular": True, "apple": False, "windowsTile": False, "coast": False, "firefox": False}
    opts.update(extra)
    return opts


def test_expand_sources(source_dir):
    (source_dir / "other.png").write_bytes(b"")
    found = expand_sources([str(source_dir / "*.png"), str(source_dir / "logo.png")])
    assert found == [str(source_dir / "logo.png"), str(source_dir / "other.png")]


def test_no_sources_is_fatal(tmp_path):
    config = TaskConfig(files=[FileGroup(src=[str(tmp_path / "nope*.png")], dest=str(tmp_path / "out"))])
    with pytest.raises(SourceNotFound):
        FaviconsTask(config, ImageMagick(runner=FakeConvert())).run()


def test_regular_end_to_end(source_dir, tmp_path, fake_convert, caplog):
    dest = tmp_path / "out"
    config = _config(source_dir, dest, **_regular_only())
    with caplog.at_level("INFO"):
        reports = FaviconsTask(config, ImageMagick(runner=fake_convert)).run()
    assert sorted(os.listdir(dest)) == ["favicon.ico", "favicon.png"]
    assert reports[0].missing == ["16x16", "32x32", "48x48", "64x64"]
    assert reports[0].outputs == {"regular": ["favicon.ico", "favicon.png"]}
    assert "Missing resolutions: 16x16, 32x32, 48x48, 64x64" in caplog.text
    assert 'Created output folder at "%s"' % dest in caplog.text
    ico_call = next(c for c in fake_convert.calls if c[-1].endswith("favicon.ico"))
    ico_index = fake_convert.calls.index(ico_call)
    scratch_indexes = [
        i for i, c in enumerate(fake_convert.calls) if os.path.basename(c[-1]) in ("16x16.png", "32x32.png", "48x48.png")
    ]
    assert max(scratch_indexes) < ico_index


def test_regular_with_64_override(source_dir, tmp_path, fake_convert):
    (source_dir / "logo.64x64.png").write_bytes(b"")
    dest = tmp_path / "out"
    reports = FaviconsTask(_config(source_dir, dest, **_regular_only()), ImageMagick(runner=fake_convert)).run()
    png_call = next(c for c in fake_convert.calls if c[-1].endswith("favicon.png"))
    assert png_call[1] == str(source_dir / "logo.64x64.png")
    assert "64x64" not in reports[0].missing


def test_missing_report_disabled(source_dir, tmp_path, fake_convert, caplog):
    config = _config(source_dir, tmp_path / "out", **_regular_only(reportMissingResolutions=False))
    with caplog.at_level("WARNING"):
        FaviconsTask(config, ImageMagick(runner=fake_convert)).run()
    assert "Missing resolutions" not in caplog.text


def test_html_and_tile_color(source_dir, tmp_path):
    html = tmp_path / "index.html"
    html.write_text("<html><head><title>x</title></head><body></body></html>", encoding="utf-8")
    convert = FakeConvert(stdout="0,0: (0,0,0)  #224466  srgb(34,68,102)\n")
    config = _config(
        source_dir,
        tmp_path / "out",
        **_regular_only(windowsTile=True, html=str(html)),
    )
    FaviconsTask(config, ImageMagick(runner=convert)).run()
    out = html.read_text(encoding="utf-8")
    assert '<meta name="msapplication-TileColor" content="#224466"/>' in out
    tile_calls = [c for c in convert.calls if "windows-tile-" in c[-1]]
    assert len(tile_calls) == 4
    assert all("-flatten" not in c for c in tile_calls)


def test_tile_flatten_without_html(source_dir, tmp_path, fake_convert):
    config = _config(source_dir, tmp_path / "out", **_regular_only(regular=False, windowsTile=True, tileColor="#010203"))
    FaviconsTask(config, ImageMagick(runner=fake_convert)).run()
    assert all(c[-4:-1] == ["-background", "#010203", "-flatten"] for c in fake_convert.calls)


def test_firefox_manifest_written(source_dir, tmp_path, fake_convert):
    manifest = tmp_path / "manifest.webapp"
    manifest.write_text(json.dumps({"name": "App"}))
    config = _config(
        source_dir,
        tmp_path / "out",
        **_regular_only(regular=False, firefox=True, firefoxRound=True, firefoxManifest=str(manifest), HTMLPrefix="/i/"),
    )
    FaviconsTask(config, ImageMagick(runner=fake_convert)).run()
    data = json.loads(manifest.read_text())
    assert data["name"] == "App"
    assert data["icons"]["256"] == "/i/firefox-icon-256x256.png"
    assert len([c for c in fake_convert.calls if "-draw" in c]) == 10


def test_missing_convert_aborts(source_dir, tmp_path):
    def runner(argv, **kwargs):
        raise FileNotFoundError(argv[0])

    config = _config(source_dir, tmp_path / "out", **_regular_only())
    with pytest.raises(ImageMagickNotFound):
        FaviconsTask(config, ImageMagick(runner=runner)).run()


def test_cleanup_is_best_effort(source_dir, tmp_path, fake_convert):
    config = _config(source_dir, tmp_path / "out", **_regular_only())
    task = FaviconsTask(config, ImageMagick(runner=fake_convert))
    plan = IconPlanner(config.options).plan(str(source_dir / "logo.png"), str(tmp_path / "out"))
    # Nothing was generated; removing absent scratch files must not raise
    task.cleanup(plan)
    task.cleanup(plan)
