"""Chart geometry: stacked and Voronoi layouts for chart visuals."""

__version__ = "0.1.0"
