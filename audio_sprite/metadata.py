from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .assembler import SpriteMap

__all__ = [
    "OUTPUT_SCHEMAS",
    "apply_resource_path",
    "render_metadata",
    "write_metadata",
]

SchemaRenderer = Callable[[Sequence[str], SpriteMap, Optional[str]], Dict[str, object]]


def _default_schema(
    resources: Sequence[str], spritemap: SpriteMap, autoplay: Optional[str]
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "resources": list(resources),
        "spritemap": {name: entry.as_dict() for name, entry in spritemap.items()},
    }
    if autoplay:
        payload["autoplay"] = autoplay
    return payload


def _howler_schema(
    resources: Sequence[str], spritemap: SpriteMap, autoplay: Optional[str]
) -> Dict[str, object]:
    sprite: Dict[str, List[object]] = {}
    for name, entry in spritemap.items():
        item: List[object] = [entry.start * 1000, entry.duration * 1000]
        if entry.loop:
            item.append(True)
        sprite[name] = item
    return {"urls": list(resources), "sprite": sprite}


def _createjs_schema(
    resources: Sequence[str], spritemap: SpriteMap, autoplay: Optional[str]
) -> Dict[str, object]:
    return {
        "src": resources[0] if resources else None,
        "data": {
            "audioSprite": [
                {
                    "id": name,
                    "startTime": entry.start * 1000,
                    "duration": entry.duration * 1000,
                }
                for name, entry in spritemap.items()
            ]
        },
    }


OUTPUT_SCHEMAS: Dict[str, SchemaRenderer] = {
    "default": _default_schema,
    "jukebox": _default_schema,
    "howler": _howler_schema,
    "createjs": _createjs_schema,
}


def apply_resource_path(resources: Sequence[str], prefix: str) -> List[str]:
    """
    Rewrite resource paths as ``prefix/<basename>`` for use in the emitted JSON.
    """
    if not prefix:
        return list(resources)
    return [os.path.join(prefix, os.path.basename(resource)) for resource in resources]


def render_metadata(
    schema: str,
    *,
    resources: Sequence[str],
    spritemap: SpriteMap,
    autoplay: Optional[str] = None,
) -> Dict[str, object]:
    try:
        renderer = OUTPUT_SCHEMAS[schema]
    except KeyError:
        raise ValueError(
            f"Unknown output format {schema!r}; expected one of {', '.join(OUTPUT_SCHEMAS)}."
        ) from None
    return renderer(resources, spritemap, autoplay)


def write_metadata(path: Path, payload: Dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, allow_nan=False)
