"""Icon job planner: which icons, at which sizes, from which file, with which transforms.

The planner never runs anything. It returns an IconPlan; the task hands the jobs
to the image processor and the filenames to the HTML and manifest writers.
Colors set to "auto" are sampled once per source through a ColorSampler and
kept in a PassContext, so FaviconOptions stays untouched between sources.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from favicons.config.loader import AUTO, NONE, FaviconOptions
from favicons.core.directives import (
    BLACK_WHITE_TILE,
    Alpha,
    Directive,
    Flatten,
    Mask,
    Reduce,
    Resize,
    Sharpen,
    pad_for,
)
from favicons.core.sources import MissingResolutions, SourceDescriptor, SourceResolver

logger = logging.getLogger(__name__)

# 16x16: browser tabs and address bar; 32x32: taskbar, reading list; 48x48: desktop
REGULAR_SIZES = ("16x16", "32x32", "48x48")
FAVICON_PNG_SIZE = "64x64"
FAVICON_ICO = "favicon.ico"
FAVICON_PNG = "favicon.png"

# (size, always precomposed). The rest follow the precomposed option.
APPLE_SIZES = (
    ("60x60", True),
    ("72x72", False),
    ("76x76", True),
    ("114x114", False),
    ("120x120", True),
    ("144x144", False),
    ("152x152", True),
)
APPLE_TOUCH_ICON = "apple-touch-icon.png"
PRECOMPOSED = "-precomposed"

COAST_SIZE = "228x228"
COAST_ICON = "coast-icon-228x228.png"

FIREFOX_SIZES = (16, 30, 32, 48, 60, 64, 90, 120, 128, 256)
TILE_SIZES = ("70x70", "144x144", "150x150", "310x310")


def apple_suffix(size: str, precomposed: bool) -> str:
    if size == "57x57":
        return ""
    for apple_size, always in APPLE_SIZES:
        if apple_size == size:
            return PRECOMPOSED if always or precomposed else ""
    raise ValueError(f"not an apple touch icon size: {size}")


def apple_icon_name(size: str, precomposed: bool) -> str:
    if size == "57x57":
        return APPLE_TOUCH_ICON
    return f"apple-touch-icon-{size}{apple_suffix(size, precomposed)}.png"


def firefox_icon_name(edge: int) -> str:
    return f"firefox-icon-{edge}x{edge}.png"


def tile_name(size: str) -> str:
    return f"windows-tile-{size}.png"


class ColorSampler(Protocol):
    """Samples a dominant color from an image via the external processor."""

    def sample_background(self, path: str) -> str:
        ...

    def sample_tile_color(self, path: str) -> str:
        ...


@dataclass
class PassContext:
    """Colors resolved for one source image."""

    apple_background: str = NONE
    tile_color: str = NONE


@dataclass
class IconJob:
    label: str
    sources: list[str]
    size: str
    destination: str
    directives: list[Directive] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)


@dataclass
class IconPlan:
    source: str
    destination: str
    context: PassContext
    missing: MissingResolutions
    jobs: list[IconJob] = field(default_factory=list)
    outputs: dict[str, list[str]] = field(default_factory=dict)
    scratch: list[str] = field(default_factory=list)
    manifest_icons: dict[str, str] = field(default_factory=dict)

    def stages(self) -> list[list[IconJob]]:
        """Group jobs so each stage only depends on outputs of earlier stages."""
        produced: dict[str, int] = {}
        stages: list[list[IconJob]] = []
        for job in self.jobs:
            level = 0
            for dep in job.depends_on:
                if dep in produced:
                    level = max(level, produced[dep] + 1)
            while len(stages) <= level:
                stages.append([])
            stages[level].append(job)
            produced[job.destination] = max(level, produced.get(job.destination, -1))
        return stages

    def missing_report(self) -> Optional[str]:
        if not self.missing:
            return None
        return "Missing resolutions: " + ", ".join(self.missing)


class IconPlanner:
    """Builds the ordered job list for one source image and one destination directory."""

    def __init__(
        self,
        options: FaviconOptions,
        sampler: ColorSampler | None = None,
        exists: Callable[[str], bool] = os.path.exists,
    ) -> None:
        self.options = options
        self._sampler = sampler
        self._exists = exists

    def plan(self, source: str, dest: str) -> IconPlan:
        descriptor = SourceDescriptor.from_path(source)
        missing = MissingResolutions()
        resolver = SourceResolver(descriptor, missing, exists=self._exists)
        plan = IconPlan(
            source=source,
            destination=dest,
            context=self.resolve_context(source),
            missing=missing,
        )
        opts = self.options
        if opts.regular:
            self._plan_regular(plan, resolver)
        if opts.apple:
            self._plan_apple(plan, resolver)
        if opts.coast:
            self._plan_coast(plan, resolver)
        if opts.firefox:
            self._plan_firefox(plan, resolver)
        if opts.windows_tile:
            self._plan_tiles(plan, resolver)
        return plan

    def resolve_context(self, source: str) -> PassContext:
        opts = self.options
        context = PassContext(
            apple_background=opts.apple_touch_background_color,
            tile_color=opts.tile_color,
        )
        if context.apple_background == AUTO:
            if opts.apple or opts.coast:
                context.apple_background = self._sample(source, tile=False)
            else:
                context.apple_background = NONE
        if context.tile_color == AUTO:
            if opts.windows_tile:
                context.tile_color = self._sample(source, tile=True)
            else:
                context.tile_color = NONE
        return context

    def _sample(self, source: str, tile: bool) -> str:
        if self._sampler is None:
            raise ValueError("color is 'auto' but no color sampler was given")
        color = self._sampler.sample_tile_color(source) if tile else self._sampler.sample_background(source)
        if not color:
            logger.warning("could not sample a color from %s, using none", source)
            return NONE
        return color

    def _resized(
        self,
        plan: IconPlan,
        src: str,
        size: str,
        name: str,
        before: tuple[Directive, ...] | list[Directive] = (),
        after: tuple[Directive, ...] | list[Directive] = (),
        padding: int | None = None,
    ) -> IconJob:
        directives: list[Directive] = [*before, Resize(size=size), *after]
        if self.options.sharp > 0:
            directives.append(Sharpen(level=self.options.sharp))
        pad = pad_for(padding, size)
        if pad is not None:
            directives.append(pad)
        job = IconJob(
            label=name,
            sources=[src],
            size=size,
            destination=os.path.join(plan.destination, name),
            directives=directives,
        )
        plan.jobs.append(job)
        return job

    def _background(self, plan: IconPlan) -> list[Directive]:
        if plan.context.apple_background == NONE:
            return []
        return [Flatten(color=plan.context.apple_background)]

    def _plan_regular(self, plan: IconPlan, resolver: SourceResolver) -> None:
        pngs = []
        for size in REGULAR_SIZES:
            src = resolver.resolve(size).path
            dest = os.path.join(plan.destination, f"{size}.png")
            plan.jobs.append(
                IconJob(label=f"{size}.png", sources=[src], size=size, destination=dest, directives=[Resize(size=size)])
            )
            pngs.append(dest)
        plan.scratch.extend(pngs)

        directives: list[Directive] = [Alpha()]
        if not self.options.true_color:
            directives.append(Reduce())
        plan.jobs.append(
            IconJob(
                label=FAVICON_ICO,
                sources=list(pngs),
                size=REGULAR_SIZES[-1],
                destination=os.path.join(plan.destination, FAVICON_ICO),
                directives=directives,
                depends_on=list(pngs),
            )
        )

        # 64x64 favicon.png, preferred over the .ico by modern browsers
        src = resolver.resolve(FAVICON_PNG_SIZE).path
        plan.jobs.append(
            IconJob(
                label=FAVICON_PNG,
                sources=[src],
                size=FAVICON_PNG_SIZE,
                destination=os.path.join(plan.destination, FAVICON_PNG),
                directives=[Resize(size=FAVICON_PNG_SIZE)],
            )
        )
        plan.outputs["regular"] = [FAVICON_ICO, FAVICON_PNG]

    def _plan_apple(self, plan: IconPlan, resolver: SourceResolver) -> None:
        opts = self.options
        background = self._background(plan)
        padding = opts.apple_touch_padding
        names = []

        # 57x57: non-retina iPhone, Android 2.1+
        src = resolver.resolve("57x57").path
        self._resized(plan, src, "57x57", APPLE_TOUCH_ICON, after=background, padding=padding)
        names.append(APPLE_TOUCH_ICON)
        if opts.precomposed:
            name = f"apple-touch-icon{PRECOMPOSED}.png"
            src = resolver.resolve("57x57").path
            self._resized(plan, src, "57x57", name, after=background, padding=padding)
            names.append(name)

        for size, _ in APPLE_SIZES:
            name = apple_icon_name(size, opts.precomposed)
            src = resolver.resolve(size).path
            self._resized(plan, src, size, name, after=background, padding=padding)
            names.append(name)
        plan.outputs["apple"] = names

    def _plan_coast(self, plan: IconPlan, resolver: SourceResolver) -> None:
        src = resolver.resolve(COAST_SIZE).path
        self._resized(plan, src, COAST_SIZE, COAST_ICON, after=self._background(plan))
        plan.outputs["coast"] = [COAST_ICON]

    def _plan_firefox(self, plan: IconPlan, resolver: SourceResolver) -> None:
        opts = self.options
        names = []
        for edge in FIREFOX_SIZES:
            size = f"{edge}x{edge}"
            name = firefox_icon_name(edge)
            src = resolver.resolve(size).path
            job = self._resized(plan, src, size, name)
            if opts.firefox_round:
                half = edge // 2
                plan.jobs.append(
                    IconJob(
                        label=f"{name} (round)",
                        sources=[],
                        size=size,
                        destination=job.destination,
                        directives=[Mask(size=size, center=half, radius=half, fill=job.destination)],
                        depends_on=[job.destination],
                    )
                )
            if opts.manifest_enabled:
                plan.manifest_icons[str(edge)] = opts.html_prefix + name
            names.append(name)
        plan.outputs["firefox"] = names

    def _plan_tiles(self, plan: IconPlan, resolver: SourceResolver) -> None:
        opts = self.options
        before: list[Directive] = list(BLACK_WHITE_TILE) if opts.tile_black_white else []
        after: list[Directive] = []
        # With HTML output the color goes into a meta tag instead of the bitmap
        if not opts.html_enabled and plan.context.tile_color != NONE:
            after.append(Flatten(color=plan.context.tile_color))
        names = []
        for size in TILE_SIZES:
            name = tile_name(size)
            src = resolver.resolve(size).path
            self._resized(plan, src, size, name, before=before, after=after)
            names.append(name)
        plan.outputs["windows_tile"] = names
