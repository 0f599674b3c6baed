from __future__ import annotations

import copy
import json
import math
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "DEFAULTS",
    "TOOLTIPS",
    "coerce_float",
    "default_settings",
    "load_settings",
    "merge_settings",
    "setting",
]

DEFAULTS = dict(
    layout=dict(mode="fibonacci", radius=2.0, count=15),
    camera=dict(homePosition=[0.0, 0.0, 5.0], fov=75.0, standoff=1.5),
    transition=dict(durationMs=800),
    formation=dict(
        pxForFull=10000.0, decayTickMs=50, idleGraceMs=5000,
        decayStep=0.01, resetOnFocus=False,
    ),
    appearance=dict(
        selectedOpacity=1.0, dimmedOpacity=0.3, idleOpacity=0.95,
        hoverOpacity=1.0, hoverScale=1.3, scaleLerp=0.1, thumbSize=0.6,
    ),
    orbit=dict(dampingFactor=0.05, rotateSpeed=0.005, enableZoom=False),
    overlay=dict(guides=False, latitudeCount=5, longitudeCount=8, segments=64, edges="none", neighbours=4),
    system=dict(frameIntervalMs=16, transparent=False),
)

TOOLTIPS = {
    "layout.mode": "Spiral (fibonacci) or latitude rows (grid) placement of the thumbnails.",
    "layout.radius": "Radius of the sphere carrying the thumbnails.",
    "layout.count": "Number of thumbnails placed on the sphere.",
    "camera.homePosition": "Camera position used when the gallery starts.",
    "camera.fov": "Vertical field of view in degrees.",
    "camera.standoff": "Distance kept between a focused thumbnail and the camera.",
    "transition.durationMs": "Length of the zoom in / zoom out camera animation.",
    "formation.pxForFull": "Pointer travel (pixels) needed to fully assemble the sphere.",
    "formation.decayTickMs": "Cadence of the idle decay of the formation.",
    "formation.idleGraceMs": "Idle time before the sphere starts to scatter again.",
    "formation.decayStep": "Amount removed from the formation on every decay tick.",
    "formation.resetOnFocus": "Scatter the sphere again when an item gets focused.",
    "appearance.selectedOpacity": "Opacity of the focused thumbnail.",
    "appearance.dimmedOpacity": "Opacity of the other thumbnails while one is focused.",
    "appearance.idleOpacity": "Opacity of thumbnails in overview.",
    "appearance.hoverOpacity": "Opacity of the hovered thumbnail in overview.",
    "appearance.hoverScale": "Scale reached by the hovered thumbnail.",
    "appearance.scaleLerp": "Per frame smoothing of the hover scale.",
    "appearance.thumbSize": "World size of a thumbnail side.",
    "orbit.dampingFactor": "Inertia of the drag rotation.",
    "orbit.rotateSpeed": "Radians of rotation per dragged pixel.",
    "orbit.enableZoom": "Allow the mouse wheel to change the orbit distance.",
    "overlay.guides": "Draw latitude and longitude guide circles around the thumbnails.",
    "overlay.latitudeCount": "Number of latitude bands drawn on the guide sphere.",
    "overlay.longitudeCount": "Number of meridians drawn on the guide sphere.",
    "overlay.segments": "Resolution of the guide circles.",
    "overlay.edges": "Graph drawn between thumbnails: none, nearest, geodesic or delaunay.",
    "overlay.neighbours": "Neighbour count used by the nearest graph.",
    "system.frameIntervalMs": "Refresh interval of the render timer.",
    "system.transparent": "Render the view on a transparent background.",
}


def default_settings() -> Dict[str, dict]:
    return copy.deepcopy(DEFAULTS)


def merge_settings(base: Dict[str, Any], payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``payload`` into ``base`` section by section and return ``base``."""

    for key, value in payload.items():
        if key not in base or not isinstance(base[key], dict) or not isinstance(value, Mapping):
            base[key] = value
            continue
        for sub_key, sub_value in value.items():
            if isinstance(base[key].get(sub_key), dict) and isinstance(sub_value, Mapping):
                base[key][sub_key].update(sub_value)
            else:
                base[key][sub_key] = sub_value
    return base


def load_settings(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Return the defaults overlaid with the JSON document stored at ``path``."""

    settings = default_settings()
    if path is None:
        return settings
    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return settings
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid settings file {source}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ValueError(f"Invalid settings file {source}: expected an object")
    return merge_settings(settings, payload)


def coerce_float(value: object, default: float = 0.0) -> float:
    """Return ``value`` converted to ``float`` when possible."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value))
        except (TypeError, ValueError):
            return default
    return number if math.isfinite(number) else default


def setting(state: Mapping[str, Any], dotted: str, fallback: Any = None) -> Any:
    """Look up ``"section.key"`` in ``state`` then in :data:`DEFAULTS`."""

    section, _, key = dotted.partition(".")
    for source in (state, DEFAULTS):
        block = source.get(section)
        if isinstance(block, Mapping) and key in block:
            return block[key]
    return fallback
