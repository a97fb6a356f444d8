"""
Core chart geometry functionality.
"""

from .models import (InvalidInput, Series, StackPoint, StackedPoint, StackedSeries,
                     ClipExtent, Site, Cell)
from .stack_layout import (StackOffset, StreamLayout, stack_series, build_baseline_series,
                           build_stream_layout)
from .voronoi_tessellation import tessellate
from .chart_layouts import (Viewport, Margin, LinearScale, ScatterPoint, Bubble,
                            layout_scatter_voronoi, layout_bubble_map)

__all__ = ['InvalidInput', 'Series', 'StackPoint', 'StackedPoint', 'StackedSeries',
           'ClipExtent', 'Site', 'Cell',
           'StackOffset', 'StreamLayout', 'stack_series', 'build_baseline_series',
           'build_stream_layout', 'tessellate',
           'Viewport', 'Margin', 'LinearScale', 'ScatterPoint', 'Bubble',
           'layout_scatter_voronoi', 'layout_bubble_map']
