"""Nearest-point search under a distance tolerance."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from inspector3d.geometry.kernel import distance


@dataclass(frozen=True)
class Hit:
    key: Any
    index: int
    distance: float


class SpatialIndex:
    """
    Linear scan over (key, index, point) entries.

    Candidates must be strictly closer than max_distance and strictly closer than the current
    best, so of equidistant points the first one in iteration order wins.
    """

    @staticmethod
    def nearest(position, max_distance: float, entries: Iterable[tuple[Any, int, Any]]) -> Optional[Hit]:
        best: Optional[Hit] = None
        best_distance = max_distance
        for key, index, point in entries:
            d = distance(position, point)
            if d < best_distance:
                best_distance = d
                best = Hit(key, index, d)
        return best

    @staticmethod
    def point_entries(items: Iterable[Any], attr: str = "position") -> Iterable[tuple[Any, int, Any]]:
        """Entries for position-anchored records (one point each, index 0)."""
        for item in items:
            yield item, 0, getattr(item, attr)
