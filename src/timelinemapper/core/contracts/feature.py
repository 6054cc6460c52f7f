"""Feature records and the tagged geometry variants they may carry.

Geometry is modelled as a discriminated union on ``kind`` instead of a raw
``type`` string, so consumers branch on the variant class:

- :class:`PointGeometry`       - a single lon/lat position.
- :class:`ArealGeometry`       - polygon-like shapes, reduced to their centroid.
- :class:`UnsupportedGeometry` - anything else (lines, collections...).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PointGeometry(BaseModel):
    """A point position in WGS84 longitude/latitude."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["point"] = "point"
    longitude: float
    latitude: float


class ArealGeometry(BaseModel):
    """A polygon or multipolygon, carried as the lon/lat of its centroid."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["areal"] = "areal"
    longitude: float = Field(description="Centroid longitude")
    latitude: float = Field(description="Centroid latitude")
    shape_type: str = Field(default="Polygon", description="Original geometry type")


class UnsupportedGeometry(BaseModel):
    """A geometry kind that has no event location."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unsupported"] = "unsupported"
    geometry_type: str = "Unknown"


Geometry = Annotated[
    PointGeometry | ArealGeometry | UnsupportedGeometry,
    Field(discriminator="kind"),
]


class FeatureRecord(BaseModel):
    """One geospatial record: attributes, optional geometry, identity."""

    model_config = ConfigDict(frozen=True)

    attributes: dict[str, Any] = Field(default_factory=dict)
    geometry: Geometry | None = None
    object_id: int | str | None = None

    def get_object_id(self) -> int | str | None:
        """Return the record's own identity, or None when the source did not set one."""
        return self.object_id


__all__ = [
    "PointGeometry",
    "ArealGeometry",
    "UnsupportedGeometry",
    "Geometry",
    "FeatureRecord",
]
