"""Pytest fixtures and config."""

import subprocess

import pytest

from favicons.config.loader import FaviconOptions


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Avoid picking up FAVICONS_* from the developer shell."""
    for key in (
        "FAVICONS_DEBUG",
        "FAVICONS_HTML",
        "FAVICONS_EXECUTABLE",
        "FAVICONS_LOG_LEVEL",
        "FAVICONS_SHARP",
        "FAVICONS_TILE_COLOR",
    ):
        monkeypatch.delenv(key, raising=False)
    yield


class FakeSampler:
    def __init__(self, background="#FFFFFF", tile="#336699"):
        self.background = background
        self.tile = tile
        self.calls = []

    def sample_background(self, path):
        self.calls.append(("background", path))
        return self.background

    def sample_tile_color(self, path):
        self.calls.append(("tile", path))
        return self.tile


@pytest.fixture
def sampler():
    return FakeSampler()


@pytest.fixture
def only_regular():
    return FaviconOptions.from_mapping(
        {"regular": True, "apple": False, "windowsTile": False, "coast": False, "firefox": False}
    )


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return src


class FakeConvert:
    """Stands in for subprocess.run: records argv and touches the output file."""

    def __init__(self, returncode=0, stdout="", stderr=""):
        self.calls = []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        if self.returncode == 0 and not argv[-1].startswith("txt:"):
            with open(argv[-1], "wb") as f:
                f.write(b"")
        return subprocess.CompletedProcess(argv, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_convert():
    return FakeConvert()
