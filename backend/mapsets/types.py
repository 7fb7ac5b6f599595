from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from lod.density import CROWD_THRESHOLD, MAX_CROWD_THRESHOLD, MarkerSizes


class MapCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class MapDefaultView(BaseModel):
    center: MapCenter = Field(default_factory=lambda: MapCenter(lat=20.0, lon=0.0))
    zoom: float = Field(default=1.5, ge=0.0, le=24.0)


SourceType = Literal["observations_json"]


class MapSetSource(BaseModel):
    type: SourceType = "observations_json"
    # Repo-relative (or absolute) path to the observations file.
    path: str


class MarkerSizeConfig(BaseModel):
    dot: float = Field(default=4.0, gt=0.0)
    band1: float = Field(default=16.0, gt=0.0)
    band2: float = Field(default=20.0, gt=0.0)
    band3: float = Field(default=26.0, gt=0.0)

    def to_sizes(self) -> MarkerSizes:
        return MarkerSizes(dot=self.dot, band1=self.band1, band2=self.band2, band3=self.band3)


class MarkerStyle(BaseModel):
    """
    Marker look, interpreted by the plot builder.
    """

    crowdThreshold: int = Field(default=CROWD_THRESHOLD, ge=1, le=MAX_CROWD_THRESHOLD)
    sizes: MarkerSizeConfig = Field(default_factory=MarkerSizeConfig)
    color: str = "rgba(48, 102, 190, 0.8)"
    labelColor: str = "#ffffff"


class ViewBehavior(BaseModel):
    # Quiescence window between the last view change and a recompute.
    debounceMs: float = Field(default=100.0, ge=0.0, le=10_000.0)
    # Display pixels kept free around the initial framing.
    framePadding: float = Field(default=50.0, ge=0.0)
    # Zoom used when a marker is clicked.
    focusZoom: float = Field(default=9.0, ge=0.0, le=24.0)
    defaultView: MapDefaultView = Field(default_factory=MapDefaultView)


class MapSetConfig(BaseModel):
    id: str
    title: str
    enabled: bool = True
    source: MapSetSource
    markers: MarkerStyle = Field(default_factory=MarkerStyle)
    view: ViewBehavior = Field(default_factory=ViewBehavior)
