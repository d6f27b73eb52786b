"""Tests for the Firefox manifest rewrite."""

import json

from favicons.core.manifest import load_manifest, update_manifest


def test_missing_manifest_starts_empty(tmp_path):
    path = tmp_path / "manifest.webapp"
    assert load_manifest(path) == {}
    data = update_manifest(path, {"16": "firefox-icon-16x16.png"})
    assert data == {"icons": {"16": "firefox-icon-16x16.png"}}
    assert json.loads(path.read_text()) == data


def test_preserves_other_keys_and_order(tmp_path):
    path = tmp_path / "manifest.webapp"
    path.write_text(json.dumps({"name": "App", "icons": {"999": "old.png"}, "version": "1.0"}))
    update_manifest(path, {"16": "/i/firefox-icon-16x16.png", "30": "/i/firefox-icon-30x30.png"})
    text = path.read_text()
    data = json.loads(text)
    assert list(data) == ["name", "icons", "version"]
    assert data["icons"] == {"16": "/i/firefox-icon-16x16.png", "30": "/i/firefox-icon-30x30.png"}
    assert '\n  "name": "App"' in text
