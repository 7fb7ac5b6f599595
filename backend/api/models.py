from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from geo.bounds import BoundingRegion
from plot.view import region_for_view


class ApiRegion(BaseModel):
    # west > east is allowed: the region crosses the antimeridian.
    south: float = Field(ge=-90.0, le=90.0)
    west: float = Field(ge=-180.0, le=180.0)
    north: float = Field(ge=-90.0, le=90.0)
    east: float = Field(ge=-180.0, le=180.0)

    def to_region(self) -> BoundingRegion:
        return BoundingRegion(
            south=self.south, west=self.west, north=self.north, east=self.east
        ).normalized()


class ApiCenter(BaseModel):
    lat: float
    lon: float


class ApiViewport(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ApiMapView(BaseModel):
    center: ApiCenter
    zoom: float = Field(ge=0.0, le=24.0)
    viewport: ApiViewport | None = None

    def viewport_dict(self) -> dict[str, int] | None:
        if self.viewport is None:
            return None
        return {"width": self.viewport.width, "height": self.viewport.height}


class ApiViewChange(BaseModel):
    """
    A view report from the map: explicit bounds win over a camera (center + zoom).
    """

    mapSetId: str | None = None
    bbox: ApiRegion | None = None
    view: ApiMapView | None = None

    def region(self) -> BoundingRegion | None:
        if self.bbox is not None:
            return self.bbox.to_region()
        if self.view is not None:
            return region_for_view(
                {"lat": self.view.center.lat, "lon": self.view.center.lon},
                self.view.zoom,
                viewport=self.view.viewport_dict(),
            )
        return None


class ApiPlotRequest(ApiViewChange):
    showViewport: bool = False


class ApiMarkerRef(BaseModel):
    mapSetId: str | None = None
    lat: float
    lon: float


class ApiStreamMessage(BaseModel):
    type: Literal["view_changed", "hover", "leave", "click"]
    bbox: ApiRegion | None = None
    view: ApiMapView | None = None
    lat: float | None = None
    lon: float | None = None
