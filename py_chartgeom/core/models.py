"""Shared data model for the stacking and tessellation layouts.

Both layouts consume plain records and return new frozen records. Inputs are
never annotated in place, so a caller may reuse its series and sites across
renders without aliasing surprises.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Hashable, Optional, Sequence, Tuple, TypeVar

from shapely.geometry import Polygon

P = TypeVar("P")

Vertex = Tuple[float, float]


class InvalidInput(ValueError):
    """Raised when geometry inputs are malformed or inconsistent."""


def is_finite_number(value: Any) -> bool:
    """Check that value is a real number other than NaN or +/-inf."""
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


# Stacking -----------------------------------------------------------------

@dataclass(frozen=True)
class StackPoint:
    """One category slot of a series. ``value=None`` marks an absent value."""
    category: Hashable
    value: Optional[float]


@dataclass(frozen=True)
class Series:
    """Ordered points on the shared category axis.

    The position of a series inside the list handed to the stacker is its
    stacking order: the first series sits at the bottom.
    """
    key: str
    points: Tuple[StackPoint, ...]

    @classmethod
    def from_values(cls, key: str, values: Sequence[Optional[float]],
                    categories: Optional[Sequence[Hashable]] = None) -> "Series":
        """Build a series from bare values, using indices as categories by default."""
        if categories is None:
            categories = range(len(values))
        elif len(categories) != len(values):
            raise InvalidInput(
                f"Series {key!r} has {len(values)} values but {len(categories)} categories"
            )
        return cls(key=key, points=tuple(
            StackPoint(category=c, value=v) for c, v in zip(categories, values)
        ))

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class StackedPoint:
    """A point after stacking.

    ``baseline_y``/``top_y`` are None when the source value was absent.
    """
    category: Hashable
    value: Optional[float]
    baseline_y: Optional[float]
    top_y: Optional[float]

    @property
    def defined(self) -> bool:
        return self.top_y is not None


@dataclass(frozen=True)
class StackedSeries:
    key: str
    points: Tuple[StackedPoint, ...]
    source_key: Optional[str] = None  # set on synthesized series only

    @property
    def is_synthesized(self) -> bool:
        return self.source_key is not None

    def __len__(self) -> int:
        return len(self.points)


# Tessellation -------------------------------------------------------------

@dataclass(frozen=True)
class ClipExtent:
    """Axis-aligned clip rectangle."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self):
        bounds = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(is_finite_number(b) for b in bounds):
            raise InvalidInput(f"Clip extent must have finite bounds, got {bounds}")
        if self.min_x >= self.max_x or self.min_y >= self.max_y:
            raise InvalidInput(f"Clip extent is empty or inverted: {bounds}")

    @classmethod
    def from_size(cls, width: float, height: float) -> "ClipExtent":
        return cls(0.0, 0.0, width, height)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


@dataclass(frozen=True)
class Site(Generic[P]):
    """A tessellation input: a location plus an opaque payload."""
    x: float
    y: float
    payload: P = None


@dataclass(frozen=True)
class Cell(Generic[P]):
    """Convex cell of one site, vertices counter-clockwise without repeating
    the first vertex. A site that owns no area gets an empty vertex tuple.
    """
    site: Site[P]
    vertices: Tuple[Vertex, ...] = field(default_factory=tuple)

    @property
    def payload(self) -> P:
        return self.site.payload

    @property
    def is_empty(self) -> bool:
        return len(self.vertices) < 3

    @property
    def area(self) -> float:
        if self.is_empty:
            return 0.0
        return float(Polygon(self.vertices).area)
