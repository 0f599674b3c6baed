"""Interactive 3D sphere gallery of image and video thumbnails."""

__version__ = "0.1.0"
