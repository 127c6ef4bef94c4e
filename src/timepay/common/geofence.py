from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..core.constants import EARTH_RADIUS_METERS
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeofenceConfig:
    enabled: bool
    center: Optional[GeoPoint] = None
    radius_meters: Optional[float] = None

    @property
    def is_configured(self) -> bool:
        return self.center is not None and self.radius_meters is not None


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance (haversine)."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_radius(point: GeoPoint, center: GeoPoint, radius_meters: float) -> bool:
    return distance_meters(point, center) <= float(radius_meters)


def enforce_geofence(config: Optional[GeofenceConfig], point: Optional[GeoPoint]) -> None:
    """Reject a clock event that does not satisfy the company geofence.

    An enabled geofence without a center or radius rejects every event.
    """
    if config is None or not config.enabled:
        return
    if point is None:
        raise ValidationError("Location is required for clocking in/out")
    if not config.is_configured:
        raise ValidationError("Geofence is enabled but not configured; contact the company owner")
    if not is_within_radius(point, config.center, config.radius_meters):
        raise ValidationError("You are outside the allowed clock-in area")
