"""
Data models for recorded paths.

Pydantic models for the persisted path records. Records are frozen: once a
recording is stored it can only be deleted as a whole, never edited.
"""

from datetime import datetime
from typing import List, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PathPoint(BaseModel):
    """One vertex of a recorded route."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False, description="WGS84 latitude in degrees")
    lng: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False, description="WGS84 longitude in degrees")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class PersistedPath(BaseModel):
    """
    One completed recording session.

    Serialized with camelCase keys (distanceKm, durationMin). Older records
    that stored plain "distance"/"duration" are still accepted on load.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, description="Unique record id")
    name: str = Field(description="Display name")
    coordinates: List[PathPoint] = Field(default_factory=list, description="Route in recording order")
    date: datetime = Field(description="Creation instant")
    distance_km: float = Field(
        ge=0.0,
        alias="distanceKm",
        validation_alias=AliasChoices("distanceKm", "distance_km", "distance"),
        description="Sum of haversine legs in kilometers",
    )
    duration_min: float = Field(
        ge=0.0,
        alias="durationMin",
        validation_alias=AliasChoices("durationMin", "duration_min", "duration"),
        description="Time between first and last point in minutes",
    )
    color: str = Field(description="Hex color assigned at creation")

    @property
    def point_count(self) -> int:
        return len(self.coordinates)

    def to_json_dict(self) -> dict:
        """Serialize with the persisted key names."""
        return self.model_dump(mode="json", by_alias=True)
