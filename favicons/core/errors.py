"""Fatal task errors. Any FaviconsError aborts the whole run."""

from __future__ import annotations


class FaviconsError(Exception):
    pass


class SourceNotFound(FaviconsError):
    """A file group matched no source images."""

    def __init__(self, patterns: list[str]) -> None:
        super().__init__(f"Source file not found: {', '.join(patterns) or '(no patterns)'}")
        self.patterns = patterns


class ImageMagickNotFound(FaviconsError):
    def __init__(self, executable: str) -> None:
        super().__init__(
            f"You need to have ImageMagick installed in your PATH for this task to work "
            f"({executable!r} not found)."
        )
        self.executable = executable


class ConversionError(FaviconsError):
    """The image processor exited non-zero for one job."""

    def __init__(self, label: str, returncode: int, stderr: str = "") -> None:
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"{label}: exit status {returncode}: {detail}")
        self.label = label
        self.returncode = returncode
        self.stderr = stderr
