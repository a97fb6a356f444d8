"""Voronoi tessellation of chart points, clipped to a rectangle."""

from typing import Dict, List, Sequence, Tuple

import numpy as np
import structlog
from scipy.spatial import QhullError, Voronoi
from shapely.geometry import MultiPoint, Polygon, box
from shapely.geometry.polygon import orient

from .models import Cell, ClipExtent, InvalidInput, P, Site, Vertex, is_finite_number

logger = structlog.get_logger()

# Guard sites sit this many bounding radii away from the center. Anything
# above 3 keeps them from winning a location inside the bounding box.
GUARD_DISTANCE_FACTOR = 10.0

# Outside-site strips thinner than this fraction of the extent size are empty
EDGE_RESIDUE_RATIO = 1e-9


def validate_sites(sites: Sequence[Site]) -> None:
    """Reject sites with missing, NaN or infinite coordinates."""
    for idx, site in enumerate(sites):
        if not (is_finite_number(site.x) and is_finite_number(site.y)):
            raise InvalidInput(
                f"Site {idx} has non-finite coordinates ({site.x!r}, {site.y!r})"
            )


def get_guard_points(points: np.ndarray, extent: ClipExtent) -> np.ndarray:
    """
    Generate four far-away guard points around the sites and the extent.

    Surrounding the input with guards makes every real Voronoi region finite
    and keeps Qhull's input full-dimensional even when all sites are
    collinear or only two sites exist.

    Args:
        points: Array of distinct [x, y] site coordinates
        extent: Clip rectangle

    Returns:
        Array of 4 guard coordinates

    Raises:
        InvalidInput: the guards would not be representable as finite floats
    """
    lower = np.minimum(points.min(axis=0), [extent.min_x, extent.min_y])
    upper = np.maximum(points.max(axis=0), [extent.max_x, extent.max_y])
    corners = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])
    with np.errstate(over="ignore", invalid="ignore"):
        center = lower / 2.0 + upper / 2.0
        radius = float(np.hypot(*(upper - lower))) / 2.0
        reach = GUARD_DISTANCE_FACTOR * radius
        guards = center + reach * corners
    if not (np.isfinite(reach) and np.all(np.isfinite(guards))):
        raise InvalidInput("Site coordinates span too large a range to tessellate")
    return guards


def dedupe_sites(sites: Sequence[Site]) -> Tuple[List[int], np.ndarray]:
    """
    Collapse coincident sites.

    The first site at a location (lowest input index) owns it.

    Returns:
        Tuple of (owner indices in input order, array of their coordinates)
    """
    seen: Dict[Vertex, int] = {}
    owners = []
    for idx, site in enumerate(sites):
        location = (float(site.x), float(site.y))
        if location in seen:
            continue
        seen[location] = idx
        owners.append(idx)

    coords = np.array([[sites[i].x, sites[i].y] for i in owners], dtype=float)
    return owners, coords


def polygon_vertices(polygon) -> Tuple[Vertex, ...]:
    """Counter-clockwise vertex tuple of a polygon, empty when it has no interior."""
    if polygon.is_empty or not isinstance(polygon, Polygon) or polygon.area <= 0:
        return ()
    ring = orient(polygon, sign=1.0).exterior.coords
    return tuple((float(x), float(y)) for x, y in list(ring)[:-1])


def is_edge_residue(polygon, site: Site, extent: ClipExtent) -> bool:
    """
    Check for a hairline strip left along the clip edge by an outside site.

    A site outside the extent whose true cell only touches the rectangle can
    come back as a polygon a few ulps wide. Sites inside the extent never
    qualify, however small their cell.
    """
    inside = (extent.min_x <= site.x <= extent.max_x
              and extent.min_y <= site.y <= extent.max_y)
    if inside or polygon.is_empty or polygon.length == 0:
        return False
    thickness = 2.0 * polygon.area / polygon.length
    return thickness <= EDGE_RESIDUE_RATIO * max(extent.width, extent.height)


def build_region_polygons(points: np.ndarray, extent: ClipExtent) -> List[Polygon]:
    """
    Compute the clipped Voronoi region of each distinct point.

    Qhull folds points closer than its precision into a neighbour and reports
    the same region for both; the lowest index keeps it and the others get
    an empty polygon.

    Args:
        points: Array of distinct [x, y] coordinates (at least two)
        extent: Clip rectangle

    Returns:
        One shapely geometry per input point, in input order

    Raises:
        InvalidInput: coordinates too large for the construction
    """
    guards = get_guard_points(points, extent)
    try:
        vor = Voronoi(np.vstack([points, guards]))
    except QhullError as e:
        raise InvalidInput(f"Voronoi construction failed: {e}") from e
    clip_box = box(*extent.as_tuple())

    logger.debug("Voronoi diagram calculated",
                 vertices=len(vor.vertices), ridges=len(vor.ridge_points))

    polygons = []
    claimed = set()
    for i in range(len(points)):
        region_idx = int(vor.point_region[i])
        region = vor.regions[region_idx] if region_idx >= 0 else []
        if region_idx in claimed or len(region) < 3 or -1 in region:
            logger.warning("Site merged into a neighbouring region", site=i)
            polygons.append(Polygon())
            continue
        claimed.add(region_idx)

        # Regions are convex; the hull orders their vertices
        hull = MultiPoint([tuple(v) for v in vor.vertices[region]]).convex_hull
        polygons.append(hull.intersection(clip_box))

    return polygons


def tessellate(sites: Sequence[Site[P]], extent: ClipExtent) -> List[Cell[P]]:
    """
    Partition the clip rectangle into one Voronoi cell per site.

    Site order does not affect the geometry; cells are returned in input
    order. Coincident sites are collapsed: the site with the lowest input
    index receives the cell and the others receive empty cells. Sites closer
    than Qhull's precision are treated as coincident. A single distinct
    location owns the whole rectangle. Sites outside the rectangle get a
    truncated or empty cell.

    Args:
        sites: Sites carrying opaque payloads
        extent: Clip rectangle

    Returns:
        List of cells, one per site

    Raises:
        InvalidInput: a site coordinate is not finite, or the coordinates are
            too far apart to tessellate in double precision
    """
    validate_sites(sites)
    if not sites:
        return []

    owners, coords = dedupe_sites(sites)
    if len(owners) < len(sites):
        logger.warning("Coincident sites collapsed",
                       sites=len(sites), distinct=len(owners))

    if len(owners) == 1:
        regions = [box(*extent.as_tuple())]
    else:
        regions = build_region_polygons(coords, extent)

    vertices_by_site = {}
    for owner, region in zip(owners, regions):
        if is_edge_residue(region, sites[owner], extent):
            vertices_by_site[owner] = ()
        else:
            vertices_by_site[owner] = polygon_vertices(region)

    cells = [Cell(site=site, vertices=vertices_by_site.get(idx, ()))
             for idx, site in enumerate(sites)]

    logger.info("Tessellation complete", sites=len(sites), distinct=len(owners),
                empty_cells=sum(1 for c in cells if c.is_empty))
    return cells
