"""Favicons task: file groups -> sources -> plan -> ImageMagick -> HTML/manifest -> cleanup."""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from favicons.core.errors import SourceNotFound
from favicons.core.html_inject import write_html
from favicons.core.magick import ImageMagick
from favicons.core.manifest import update_manifest
from favicons.core.planner import IconPlan, IconPlanner

if TYPE_CHECKING:
    from favicons.config.loader import FileGroup, TaskConfig

logger = logging.getLogger(__name__)


@dataclass
class SourceReport:
    """What one source image produced."""

    source: str
    destination: str
    outputs: dict[str, list[str]] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)


def expand_sources(patterns: list[str]) -> list[str]:
    """Files matched by the patterns, in pattern order, without duplicates."""
    found: list[str] = []
    for pattern in patterns:
        for path in sorted(glob.glob(pattern, recursive=True)):
            if os.path.isfile(path) and path not in found:
                found.append(path)
    return found


class FaviconsTask:
    """Sequential run over all file groups. Any FaviconsError stops the task."""

    def __init__(self, config: "TaskConfig", magick: Optional[ImageMagick] = None) -> None:
        self._config = config
        self._options = config.options
        self._magick = magick or ImageMagick(config.executable, debug=config.options.debug)

    def run(self) -> list[SourceReport]:
        reports: list[SourceReport] = []
        for group in self._config.files:
            reports.extend(self.process_group(group))
        return reports

    def process_group(self, group: "FileGroup") -> list[SourceReport]:
        sources = expand_sources(group.src)
        if not sources:
            raise SourceNotFound(group.src)
        if not os.path.isdir(group.dest):
            os.makedirs(group.dest, exist_ok=True)
            logger.info('Created output folder at "%s"', group.dest)
        return [self.process_source(source, group.dest) for source in sources]

    def process_source(self, source: str, dest: str) -> SourceReport:
        logger.info('Resizing images for "%s"', source, extra={"source": source})
        planner = IconPlanner(self._options, sampler=self._magick)
        plan = planner.plan(source, dest)
        self.execute(plan)

        if self._options.firefox and self._options.manifest_enabled:
            update_manifest(self._options.firefox_manifest, plan.manifest_icons)
        if self._options.html_enabled:
            write_html(self._options.html, self._options, plan.context.tile_color)

        report = plan.missing_report()
        if report and self._options.report_missing_resolutions:
            logger.warning("%s", report, extra={"source": source})

        self.cleanup(plan)
        return SourceReport(
            source=source,
            destination=dest,
            outputs={k: list(v) for k, v in plan.outputs.items()},
            missing=plan.missing.as_list(),
        )

    def execute(self, plan: IconPlan) -> None:
        for stage in plan.stages():
            for job in stage:
                self._magick.run(job)
                logger.info("%s... ok", job.label)

    def cleanup(self, plan: IconPlan) -> None:
        for path in plan.scratch:
            try:
                os.unlink(path)
            except OSError as e:
                logger.debug("could not remove %s: %s", path, e)
