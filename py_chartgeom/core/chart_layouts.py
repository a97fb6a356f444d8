"""
Per-visual layout call sites.

Each chart type uses one of the two geometry kernels:

- stream chart: stacked layout plus the bottom outline series
- Voronoi scatter chart: data points scaled to pixels, then tessellated
  against the plot area
- Voronoi bubble map: pixel-space bubbles tessellated against the viewport,
  each cell weighted by its bubble's relative radius
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Tuple

import structlog

from .models import Cell, ClipExtent, InvalidInput, P, Site, StackedPoint, is_finite_number
from .voronoi_tessellation import tessellate

logger = structlog.get_logger()


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class Margin:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


def plot_size(viewport: Viewport, margin: Optional[Margin] = None) -> Tuple[float, float]:
    """Drawable (width, height) inside the margins, never negative."""
    margin = margin or Margin()
    width = viewport.width - (margin.left + margin.right)
    height = viewport.height - (margin.top + margin.bottom)
    return max(width, 0.0), max(height, 0.0)


@dataclass(frozen=True)
class LinearScale:
    """Maps a numeric domain linearly onto a pixel range."""
    domain: Tuple[float, float]
    range: Tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return float(r0)
        t = (value - d0) / (d1 - d0)
        return float(r0 + t * (r1 - r0))

    @classmethod
    def fit(cls, values: Sequence[float], range: Tuple[float, float]) -> "LinearScale":
        """Scale whose domain is the extent of the given values."""
        finite = [v for v in values if is_finite_number(v)]
        if not finite:
            return cls(domain=(0.0, 1.0), range=range)
        return cls(domain=(min(finite), max(finite)), range=range)


# Stream chart -------------------------------------------------------------

def defined_runs(points: Sequence[StackedPoint]) -> List[List[Tuple[int, StackedPoint]]]:
    """Split a stacked series into maximal runs of consecutive defined points.

    Each run is a list of (category index, point) pairs; an undefined point
    ends the current run.
    """
    runs = []
    current = []
    for idx, point in enumerate(points):
        if point.defined:
            current.append((idx, point))
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def area_band(points: Sequence[StackedPoint], y_scale: LinearScale,
              plot_height: float) -> List[Tuple[int, float, float]]:
    """
    Pixel band of a stacked series for the area generator.

    Args:
        points: Points of one stacked series
        y_scale: Maps stacked values to pixel rows
        plot_height: Height of the plot area; the lower edge never goes below it

    Returns:
        (category index, y0, y1) per defined point, y0 being the lower edge
    """
    band = []
    for idx, point in enumerate(points):
        if not point.defined:
            continue
        y0 = min(y_scale(point.baseline_y), plot_height)
        band.append((idx, y0, y_scale(point.top_y)))
    return band


# Voronoi scatter chart ----------------------------------------------------

@dataclass(frozen=True)
class ScatterPoint(Generic[P]):
    x: float
    y: float
    payload: P = None


def layout_scatter_voronoi(points: Sequence[ScatterPoint[P]], x_scale: LinearScale,
                           y_scale: LinearScale, width: float,
                           height: float) -> List[Cell[ScatterPoint[P]]]:
    """
    Tessellate scatter points in pixel space against the plot area.

    Args:
        points: Data-space points
        x_scale: Data to pixel mapping for x
        y_scale: Data to pixel mapping for y
        width: Plot area width in pixels
        height: Plot area height in pixels

    Returns:
        Cells in pixel space whose payload is the original scatter point
    """
    for idx, point in enumerate(points):
        if not (is_finite_number(point.x) and is_finite_number(point.y)):
            raise InvalidInput(
                f"Scatter point {idx} has non-finite coordinates ({point.x!r}, {point.y!r})"
            )

    sites = [Site(x=x_scale(p.x), y=y_scale(p.y), payload=p) for p in points]
    cells = tessellate(sites, ClipExtent.from_size(width, height))

    logger.info("Scatter Voronoi layout built", points=len(points),
                width=width, height=height)
    return cells


# Voronoi bubble map -------------------------------------------------------

@dataclass(frozen=True)
class Bubble(Generic[P]):
    """Map bubble already projected to pixel coordinates."""
    x: float
    y: float
    radius: float
    payload: P = None


@dataclass(frozen=True)
class WeightedCell(Generic[P]):
    cell: Cell[Bubble[P]]
    relative_radius: float


def layout_bubble_map(bubbles: Sequence[Bubble[P]],
                      viewport: Viewport) -> List[WeightedCell[P]]:
    """
    Tessellate map bubbles against the viewport.

    Each cell carries radius / max radius, which the renderer multiplies into
    the fill opacity. When every radius is 0 the weight is 0.
    """
    for idx, bubble in enumerate(bubbles):
        if not is_finite_number(bubble.radius) or bubble.radius < 0:
            raise InvalidInput(f"Bubble {idx} has invalid radius {bubble.radius!r}")

    extent = ClipExtent.from_size(viewport.width, viewport.height)
    sites = [Site(x=b.x, y=b.y, payload=b) for b in bubbles]
    cells = tessellate(sites, extent)

    max_radius = max((b.radius for b in bubbles), default=0.0)
    weighted = [
        WeightedCell(
            cell=cell,
            relative_radius=cell.payload.radius / max_radius if max_radius > 0 else 0.0,
        )
        for cell in cells
    ]

    logger.info("Bubble map layout built", bubbles=len(bubbles),
                max_radius=max_radius)
    return weighted
