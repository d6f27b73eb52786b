"""Image transform directives. Pydantic models; the ImageMagick renderer turns them into arguments."""

from __future__ import annotations

import math
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Directive(BaseModel):
    model_config = ConfigDict(frozen=True)


class Resize(_Directive):
    kind: Literal["resize"] = "resize"
    size: str = Field(description="Target box, e.g. 57x57")


class Sharpen(_Directive):
    """Adaptive sharpen, radius x sigma both set to level."""

    kind: Literal["sharpen"] = "sharpen"
    level: int


class Pad(_Directive):
    """Centered thumbnail of edge `thumb`, extended back to `size`."""

    kind: Literal["pad"] = "pad"
    size: str
    thumb: int


class Flatten(_Directive):
    kind: Literal["flatten"] = "flatten"
    color: str


class Recolor(_Directive):
    """Replace `source` with `target` within `fuzz` percent."""

    kind: Literal["recolor"] = "recolor"
    source: str
    target: str
    fuzz: int = 100


class Mask(_Directive):
    """Circular alpha mask drawn over an existing image, filled with that image."""

    kind: Literal["mask"] = "mask"
    size: str
    center: int
    radius: int
    fill: str = Field(description="Image used as fill pattern (the icon itself)")


class Alpha(_Directive):
    kind: Literal["alpha"] = "alpha"
    background: str = "none"


class Reduce(_Directive):
    """Palette reduction with a zero-width border, for non true-color .ico output."""

    kind: Literal["reduce"] = "reduce"
    colors: int = 64
    border_color: str = "white"
    border: int = 0


Directive = Annotated[
    Union[Resize, Sharpen, Pad, Flatten, Recolor, Mask, Alpha, Reduce],
    Field(discriminator="kind"),
]


def parse_size(size: str) -> int:
    """Edge length of a square size token ("152x152" -> 152)."""
    return int(size.split("x")[0])


def thumbnail_edge(padding: int, size: str) -> int:
    # Half rounds up
    return int(math.floor((100 - padding) * parse_size(size) / 100 + 0.5))


def pad_for(padding: int | None, size: str) -> Pad | None:
    if padding is None or not 0 <= padding < 100:
        return None
    return Pad(size=size, thumb=thumbnail_edge(padding, size))


BLACK_WHITE_TILE = (
    Recolor(source="red", target="black"),
    Recolor(source="blue", target="black"),
    Recolor(source="green", target="white"),
)
