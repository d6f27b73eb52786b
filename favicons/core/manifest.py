"""Firefox OS manifest: rewrite the `icons` mapping, keep every other key."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def load_manifest(path: str | Path) -> dict[str, Any]:
    target = Path(path)
    if not target.exists():
        return {}
    with open(target, "r", encoding="utf-8") as f:
        return json.load(f)


def update_manifest(path: str | Path, icons: Mapping[str, str]) -> dict[str, Any]:
    data = load_manifest(path)
    data["icons"] = dict(icons)
    Path(path).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Updated Firefox manifest %s", path, extra={"icons": len(icons)})
    return data
