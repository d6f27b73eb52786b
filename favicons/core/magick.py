"""ImageMagick collaborator: renders directives to `convert` arguments and runs them."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import Any, Callable

from favicons.core.directives import Alpha, Flatten, Mask, Pad, Recolor, Reduce, Resize, Sharpen
from favicons.core.errors import ConversionError, FaviconsError, ImageMagickNotFound
from favicons.core.planner import IconJob

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
_NOT_FOUND = 127
_HEX_COLOR = re.compile(r"#[0-9A-Fa-f]+")

# Single pixel polaroid average: a soft background close to the image edges
_BACKGROUND_SAMPLE = ["-polaroid", "180", "-resize", "1x1", "-colors", "1", "-alpha", "off", "-unique-colors", "txt:-"]
# Single color quantization without dithering
_TILE_SAMPLE = ["+dither", "-colors", "1", "-alpha", "off", "-unique-colors", "txt:-"]


def directive_args(directive: Any) -> list[str]:
    if isinstance(directive, Resize):
        return ["-resize", directive.size]
    if isinstance(directive, Sharpen):
        return ["-adaptive-sharpen", f"{directive.level}x{directive.level}"]
    if isinstance(directive, Pad):
        return [
            "-gravity",
            "center",
            "-thumbnail",
            f"{directive.thumb}x{directive.thumb}>",
            "-extent",
            directive.size,
        ]
    if isinstance(directive, Flatten):
        return ["-background", directive.color, "-flatten"]
    if isinstance(directive, Recolor):
        return ["-fuzz", f"{directive.fuzz}%", "-fill", directive.target, "-opaque", directive.source]
    if isinstance(directive, Mask):
        # Second point lies on the circle edge
        edge = directive.center - directive.radius + 1
        return [
            "-size",
            directive.size,
            "xc:none",
            "-fill",
            directive.fill,
            "-draw",
            f"circle {directive.center},{directive.center} {directive.center},{edge}",
        ]
    if isinstance(directive, Alpha):
        return ["-alpha", "on", "-background", directive.background]
    if isinstance(directive, Reduce):
        return [
            "-bordercolor",
            directive.border_color,
            "-border",
            str(directive.border),
            "-colors",
            str(directive.colors),
        ]
    raise TypeError(f"unknown directive: {directive!r}")


def parse_color(output: str) -> str:
    """First #RRGGBB token of `txt:-` output, skipping the ImageMagick header line."""
    for line in output.splitlines():
        if "ImageMagick" in line:
            continue
        found = _HEX_COLOR.findall(line)
        if found:
            return found[-1]
    return ""


class ImageMagick:
    """Runs `convert` synchronously. A missing binary is fatal for the whole task."""

    def __init__(
        self,
        executable: str = "convert",
        debug: bool = False,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.executable = executable
        self.debug = debug
        self._runner = runner

    def render(self, job: IconJob) -> list[str]:
        argv = [self.executable, *job.sources]
        for directive in job.directives:
            argv.extend(directive_args(directive))
        argv.append(job.destination)
        return argv

    def run(self, job: IconJob) -> None:
        for dep in job.depends_on:
            if not os.path.exists(dep):
                raise FaviconsError(f"{job.label}: input {dep} was not generated")
        proc = self._execute(self.render(job))
        if proc.returncode != 0:
            raise ConversionError(job.label, proc.returncode, proc.stderr or "")

    def sample_background(self, path: str) -> str:
        return self._sample(path, _BACKGROUND_SAMPLE)

    def sample_tile_color(self, path: str) -> str:
        return self._sample(path, _TILE_SAMPLE)

    def _sample(self, path: str, args: list[str]) -> str:
        proc = self._execute([self.executable, path, *args])
        if proc.returncode != 0:
            logger.warning("color sampling failed for %s: %s", path, (proc.stderr or "").strip())
            return ""
        return parse_color(proc.stdout or "")

    def _execute(self, argv: list[str]) -> subprocess.CompletedProcess:
        if self.debug:
            logger.debug("%s", subprocess.list2cmdline(argv))
        try:
            proc = self._runner(argv, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            raise ImageMagickNotFound(self.executable) from None
        if proc.returncode == _NOT_FOUND:
            raise ImageMagickNotFound(self.executable)
        return proc
