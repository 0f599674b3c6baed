"""Rendering layer: the Qt free frame engine and the widgets painting it."""

from .engine import GalleryEngine, RenderItem

__all__ = ["GalleryEngine", "RenderItem"]
