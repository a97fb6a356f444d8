"""
Stacked layout for stream and stacked-area charts.

Converts independent series on a shared category axis into baseline/top
coordinates. Two offset policies are supported:

- zero: the first defined series at each category starts at 0
- silhouette: each category is shifted by half its total so the stack is
  centered on 0 (streamgraph layout)

Absent values (None) keep their slot but never add height and never produce
a baseline or top.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np
import structlog

from .models import (
    InvalidInput, Series, StackedPoint, StackedSeries, is_finite_number
)

logger = structlog.get_logger()

BASELINE_KEY_SUFFIX = ":baseline"


class StackOffset(str, Enum):
    """Vertical offset policy applied after accumulation."""
    ZERO = "zero"
    SILHOUETTE = "silhouette"


@dataclass(frozen=True)
class StreamLayout:
    """Stacked series followed by the synthesized outline series."""
    series: List[StackedSeries]
    baseline: Optional[StackedSeries]
    offset: StackOffset

    @property
    def all_series(self) -> List[StackedSeries]:
        """Real series in stacking order, outline last."""
        if self.baseline is None:
            return list(self.series)
        return list(self.series) + [self.baseline]


def _resolve_offset(offset) -> StackOffset:
    try:
        return StackOffset(offset)
    except ValueError as e:
        raise InvalidInput(f"Unknown offset policy {offset!r}") from e


def _validate_series(series: Sequence[Series]) -> int:
    """Return the shared domain length or raise InvalidInput."""
    if not series:
        return 0

    n_categories = len(series[0].points)
    for s in series:
        if len(s.points) != n_categories:
            raise InvalidInput(
                f"Series {s.key!r} has {len(s.points)} categories, "
                f"expected {n_categories}"
            )
        for idx, point in enumerate(s.points):
            if point.value is not None and not is_finite_number(point.value):
                raise InvalidInput(
                    f"Series {s.key!r} has non-finite value {point.value!r} "
                    f"at category index {idx}"
                )
    return n_categories


def stack_series(series: Sequence[Series],
                 offset: StackOffset = StackOffset.ZERO) -> List[StackedSeries]:
    """
    Stack series bottom to top in the order given.

    Args:
        series: Series sharing the same category domain. List order is the
            stacking order.
        offset: Offset policy (zero baseline or silhouette)

    Returns:
        New stacked series, same order and keys as the input

    Raises:
        InvalidInput: domains differ in length, a value is not finite or the
            offset policy is unknown
    """
    offset = _resolve_offset(offset)
    n_categories = _validate_series(series)
    n_series = len(series)

    # NaN marks absent slots while accumulating
    values = np.full((n_series, n_categories), np.nan)
    for i, s in enumerate(series):
        for j, point in enumerate(s.points):
            if point.value is not None:
                values[i, j] = point.value

    defined = ~np.isnan(values)
    heights = np.where(defined, values, 0.0)
    tops = np.cumsum(heights, axis=0)
    # Each baseline is exactly the running total below it
    baselines = np.vstack([np.zeros((1, n_categories)), tops[:-1]])

    if offset is StackOffset.SILHOUETTE and n_series:
        shift = tops[-1] / 2.0
        tops = tops - shift
        baselines = baselines - shift

    stacked = []
    for i, s in enumerate(series):
        points = []
        for j, point in enumerate(s.points):
            if defined[i, j]:
                points.append(StackedPoint(
                    category=point.category,
                    value=point.value,
                    baseline_y=float(baselines[i, j]),
                    top_y=float(tops[i, j]),
                ))
            else:
                points.append(StackedPoint(point.category, None, None, None))
        stacked.append(StackedSeries(key=s.key, points=tuple(points)))

    logger.debug("Stacked series", series=n_series,
                 categories=n_categories, offset=offset.value)
    return stacked


def find_bottom_series(stacked: Sequence[StackedSeries]) -> Optional[StackedSeries]:
    """Series whose defined baselines have the smallest sum (first on ties)."""
    bottom = None
    bottom_sum = None
    for s in stacked:
        total = sum(p.baseline_y for p in s.points if p.defined)
        if bottom_sum is None or total < bottom_sum:
            bottom, bottom_sum = s, total
    return bottom


def _fresh_key(base: str, taken: set) -> str:
    key = base + BASELINE_KEY_SUFFIX
    counter = 1
    while key in taken:
        counter += 1
        key = f"{base}{BASELINE_KEY_SUFFIX}{counter}"
    return key


def build_baseline_series(stacked: Sequence[StackedSeries]) -> Optional[StackedSeries]:
    """
    Synthesize the outline series running along the bottom of the stack.

    The outline follows the bottom series (smallest baseline sum). Its value
    at each category is the lowest defined baseline there, which is the
    bottom series' own baseline wherever that series has a value; categories
    with no defined point at all stay undefined.

    Args:
        stacked: Output of stack_series

    Returns:
        The outline series with a key unused by any real series, or None
        when there is nothing to outline
    """
    bottom = find_bottom_series(stacked)
    if bottom is None:
        return None

    key = _fresh_key(bottom.key, {s.key for s in stacked})

    points = []
    for j, point in enumerate(bottom.points):
        candidates = [s.points[j].baseline_y for s in stacked if s.points[j].defined]
        if not candidates:
            points.append(StackedPoint(point.category, None, None, None))
            continue
        low = min(candidates)
        points.append(StackedPoint(
            category=point.category, value=low, baseline_y=low, top_y=low,
        ))

    return StackedSeries(key=key, points=tuple(points), source_key=bottom.key)


def build_stream_layout(series: Sequence[Series],
                        offset: StackOffset = StackOffset.ZERO,
                        include_baseline: bool = True) -> StreamLayout:
    """Stack series and append the outline series drawn last."""
    offset = _resolve_offset(offset)
    stacked = stack_series(series, offset)
    baseline = build_baseline_series(stacked) if include_baseline else None

    logger.info("Stream layout built", series=len(stacked),
                offset=offset.value,
                baseline_key=baseline.key if baseline else None)
    return StreamLayout(series=stacked, baseline=baseline, offset=offset)
