"""FastAPI layout service."""

import logging
from typing import Any, List, Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import settings
from ..core.models import ClipExtent, InvalidInput, Series, Site, StackedSeries
from ..core.stack_layout import StackOffset, build_stream_layout
from ..core.voronoi_tessellation import tessellate

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.dev.ConsoleRenderer() if settings.log_format == "plain"
        else structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Chart Geometry API",
    description="Stacked and Voronoi layouts for chart visuals",
    version="0.1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class SeriesInput(BaseModel):
    """One series of a stack request."""

    key: str
    values: List[Optional[float]]
    categories: Optional[List[Any]] = Field(None, description="Category labels, defaults to indices")


class StackRequest(BaseModel):
    """Request to stack series for a stream or stacked-area chart."""

    series: List[SeriesInput] = Field(..., description="Series in stacking order, bottom first")
    offset: StackOffset = Field(StackOffset.ZERO, description="Offset policy")
    include_baseline: bool = Field(True, description="Append the bottom outline series")


class StackedPointOutput(BaseModel):
    category: Any
    value: Optional[float]
    baseline_y: Optional[float]
    top_y: Optional[float]
    defined: bool


class StackedSeriesOutput(BaseModel):
    key: str
    source_key: Optional[str] = None
    points: List[StackedPointOutput]


class StackResponse(BaseModel):
    offset: StackOffset
    series: List[StackedSeriesOutput]
    baseline: Optional[StackedSeriesOutput] = None


class SiteInput(BaseModel):
    x: float
    y: float
    key: str


class ExtentInput(BaseModel):
    min_x: float
    min_y: float
    max_x: float
    max_y: float


class VoronoiRequest(BaseModel):
    """Request to tessellate points against a clip rectangle."""

    sites: List[SiteInput]
    extent: ExtentInput


class CellOutput(BaseModel):
    key: str
    vertices: List[List[float]]


class VoronoiResponse(BaseModel):
    cells: List[CellOutput]


def _series_output(stacked: StackedSeries) -> StackedSeriesOutput:
    return StackedSeriesOutput(
        key=stacked.key,
        source_key=stacked.source_key,
        points=[
            StackedPointOutput(
                category=p.category,
                value=p.value,
                baseline_y=p.baseline_y,
                top_y=p.top_y,
                defined=p.defined,
            )
            for p in stacked.points
        ],
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Chart Geometry API", host=settings.api_host, port=settings.api_port)


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Chart Geometry API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/layouts/stack", response_model=StackResponse)
def stack_layout(request: StackRequest):
    """Stack series and optionally append the outline series."""
    logger.info("Stack layout requested", series=len(request.series),
                offset=request.offset.value)

    if len(request.series) > settings.max_series:
        raise HTTPException(status_code=413,
                            detail=f"Too many series (limit {settings.max_series})")
    if any(len(s.values) > settings.max_categories for s in request.series):
        raise HTTPException(status_code=413,
                            detail=f"Too many categories (limit {settings.max_categories})")

    try:
        series = [Series.from_values(s.key, s.values, s.categories) for s in request.series]
        layout = build_stream_layout(series, request.offset, request.include_baseline)
    except InvalidInput as e:
        logger.warning("Stack layout rejected", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return StackResponse(
        offset=layout.offset,
        series=[_series_output(s) for s in layout.series],
        baseline=_series_output(layout.baseline) if layout.baseline else None,
    )


@app.post("/layouts/voronoi", response_model=VoronoiResponse)
def voronoi_layout(request: VoronoiRequest):
    """Tessellate sites against the clip rectangle."""
    logger.info("Voronoi layout requested", sites=len(request.sites))

    if len(request.sites) > settings.max_sites:
        raise HTTPException(status_code=413,
                            detail=f"Too many sites (limit {settings.max_sites})")

    try:
        extent = ClipExtent(**request.extent.model_dump())
        sites = [Site(x=s.x, y=s.y, payload=s.key) for s in request.sites]
        cells = tessellate(sites, extent)
    except InvalidInput as e:
        logger.warning("Voronoi layout rejected", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return VoronoiResponse(cells=[
        CellOutput(key=c.payload, vertices=[[x, y] for x, y in c.vertices])
        for c in cells
    ])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
