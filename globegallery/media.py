"""Media catalogue and the two-outcome preload contract.

The core never looks inside a media file.  It only hands the selected item to
:class:`MediaPreloader` and the presentation layer reads back
:class:`PreloadState` to decide between the thumbnail and the full quality
asset.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from .diagnostics import debug

__all__ = [
    "DEFAULT_MEDIA",
    "MediaItem",
    "MediaPreloader",
    "PreloadState",
    "default_probe",
    "high_quality_url",
    "load_media_catalog",
]

_PREVIEW_WIDTH = "w=600"
_FULL_WIDTH = "w=1200"


@dataclass(frozen=True)
class MediaItem:
    id: str
    image_url: str
    title: str
    kind: str = "image"
    video_url: Optional[str] = None

    @property
    def is_video(self) -> bool:
        return self.kind == "video"


def _unsplash(photo: str) -> str:
    return f"https://images.unsplash.com/photo-{photo}?{_PREVIEW_WIDTH}"


DEFAULT_MEDIA: List[MediaItem] = [
    MediaItem("1", _unsplash("1506905925346-21bda4d32df4"), "Mountain Vista"),
    MediaItem("2", _unsplash("1469474968028-56623f02e42e"), "Forest Path"),
    MediaItem("3", _unsplash("1501785888041-af3ef285b470"), "Lakeside Sunset"),
    MediaItem("4", _unsplash("1511884642898-4c92249e20b6"), "Ocean Waves"),
    MediaItem("5", _unsplash("1470071459604-3b5ec3a7fe05"), "Misty Mountains"),
    MediaItem("6", _unsplash("1441974231531-c6227db76b6e"), "Desert Dunes"),
    MediaItem("7", _unsplash("1475924156734-496f6cac6ec1"), "Coastal Cliffs"),
    MediaItem("8", _unsplash("1426604966848-d7adac402bff"), "Aurora Sky"),
    MediaItem("9", _unsplash("1472214103451-9374bd1c798e"), "Tropical Paradise"),
    MediaItem("10", _unsplash("1506905925346-21bda4d32df4"), "Canyon View"),
    MediaItem(
        "11",
        _unsplash("1418065460487-3e41a6c84dc5"),
        "Waterfall Motion",
        kind="video",
        video_url="https://videos.pexels.com/video-files/3571264/3571264-uhd_2560_1440_30fps.mp4",
    ),
    MediaItem("12", _unsplash("1464822759023-fed622ff2c3b"), "Snowy Peaks"),
    MediaItem("13", _unsplash("1439066615861-d1af74d74000"), "Prairie Sunset"),
    MediaItem(
        "14",
        _unsplash("1483728642387-6c3bdd6c93e5"),
        "Ocean Sunset",
        kind="video",
        video_url="https://videos.pexels.com/video-files/2169880/2169880-uhd_2560_1440_30fps.mp4",
    ),
    MediaItem("15", _unsplash("1447752875215-b2761acb3c5d"), "Countryside"),
]


def _item_from_mapping(index: int, entry: Mapping[str, object]) -> MediaItem:
    image_url = entry.get("imageUrl") or entry.get("image_url")
    if not isinstance(image_url, str) or not image_url.strip():
        raise ValueError(f"Media entry #{index} has no imageUrl")
    kind = str(entry.get("type") or entry.get("kind") or "image").lower()
    if kind not in {"image", "video"}:
        raise ValueError(f"Media entry #{index} has unsupported type {kind!r}")
    video_url = entry.get("videoUrl") or entry.get("video_url")
    ident = entry.get("id", index + 1)
    title = entry.get("title") or f"Item {index + 1}"
    return MediaItem(
        id=str(ident),
        image_url=image_url.strip(),
        title=str(title),
        kind=kind,
        video_url=str(video_url) if video_url else None,
    )


def load_media_catalog(path: Path | str) -> List[MediaItem]:
    """Read a JSON list of media entries (``id``, ``imageUrl``, ``title``, ``type``, ``videoUrl``)."""

    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid media catalogue {source}: {exc}") from exc
    if isinstance(payload, Mapping):
        payload = payload.get("items")
    if not isinstance(payload, Sequence) or isinstance(payload, str) or not payload:
        raise ValueError(f"Invalid media catalogue {source}: expected a non empty list")
    items: List[MediaItem] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, Mapping):
            raise ValueError(f"Media entry #{index} is not an object")
        items.append(_item_from_mapping(index, entry))
    return items


def high_quality_url(item: MediaItem) -> str:
    if item.is_video:
        return item.video_url or item.image_url
    return item.image_url.replace(_PREVIEW_WIDTH, _FULL_WIDTH)


def default_probe(url: str) -> None:
    """Accept remote URLs; local paths must exist."""

    if "://" in url:
        return
    if not Path(url).exists():
        raise FileNotFoundError(f"Failed to load media: {url}")


@dataclass(frozen=True)
class PreloadState:
    is_loading: bool = False
    is_loaded: bool = False
    error: Optional[str] = None
    high_quality_url: Optional[str] = None


class MediaPreloader:
    """Pending -> loaded(url) | failed(reason) for the selected item.

    ``request`` records what should be loaded; ``run_pending`` performs the
    probe.  The host decides when ``run_pending`` runs (the Qt view schedules
    it on the next event loop turn), and a request superseded before it runs
    is never resolved.
    """

    def __init__(self, probe: Optional[Callable[[str], None]] = None) -> None:
        self._probe = probe or default_probe
        self._state = PreloadState()
        self._pending: Optional[MediaItem] = None

    @property
    def state(self) -> PreloadState:
        return self._state

    @property
    def pending(self) -> Optional[MediaItem]:
        return self._pending

    def request(self, item: Optional[MediaItem]) -> PreloadState:
        self._pending = item
        if item is None:
            self._state = PreloadState()
        else:
            self._state = PreloadState(is_loading=True)
        return self._state

    def run_pending(self) -> PreloadState:
        item = self._pending
        if item is None:
            return self._state
        self._pending = None
        url = high_quality_url(item)
        try:
            self._probe(url)
        except Exception as exc:  # the probe is host supplied; any failure means not loaded
            debug("preload failed for item %s: %s" % (item.id, exc))
            self._state = PreloadState(error=str(exc))
        else:
            self._state = PreloadState(is_loaded=True, high_quality_url=url)
        return self._state
