"""Geometry kernel, spatial search and unit formatting."""

from inspector3d.geometry import kernel
from inspector3d.geometry.spatial_index import SpatialIndex, Hit

__all__ = ["kernel", "SpatialIndex", "Hit"]
