"""
Geofence module for Safe Jobs.

Provides great-circle distance between coordinates (haversine formula on a
spherical earth) and proximity filtering of job listings around a reference
point, nearest first.
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Iterable, Optional

from .config import ProximityConfig
from .database import Coordinate, JobRecord

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


@dataclass
class ScoredJobRecord(JobRecord):
    """A job annotated with its distance from the query's reference point."""
    distance_km: Optional[float] = None

    @classmethod
    def from_job(cls, job: JobRecord, distance_km: Optional[float]) -> "ScoredJobRecord":
        """Derive a scored copy of a job; the source record is left untouched."""
        values = {f.name: getattr(job, f.name) for f in fields(JobRecord)}
        return cls(**values, distance_km=distance_km)

    @property
    def display_distance(self) -> Optional[float]:
        """Distance rounded to 0.1 km for display."""
        if self.distance_km is None:
            return None
        return round(self.distance_km, 1)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance between two coordinates in kilometers.

    Args:
        a: First coordinate (degrees).
        b: Second coordinate (degrees).

    Returns:
        Distance in km, non-negative.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))

    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def filter_by_proximity(
    records: Iterable[JobRecord],
    reference: Optional[Coordinate],
    radius_km: float,
) -> list[ScoredJobRecord]:
    """
    Return the records within a radius of the reference, nearest first.

    Records without coordinates are dropped. Each returned record is a
    derived copy carrying distance_km; ties keep their input order.

    Args:
        records: Jobs to filter.
        reference: The point to measure from. None yields no results.
        radius_km: Inclusive radius. Non-positive yields no results.

    Returns:
        New list of ScoredJobRecord sorted by distance.
    """
    if reference is None or radius_km <= 0:
        return []

    nearby = []
    for job in records:
        if job.coordinates is None:
            continue

        distance = distance_km(reference, job.coordinates)
        if distance <= radius_km:
            nearby.append(ScoredJobRecord.from_job(job, distance))

    # sorted() is stable, so equal distances keep input order
    return sorted(nearby, key=lambda scored: scored.distance_km)


class ProximityFilter:
    """
    Proximity filter bound to the configured default radius.
    """

    def __init__(self, config: Optional[ProximityConfig] = None):
        self.config = config or ProximityConfig()
        self.default_radius_km = self.config.default_radius_km
        logger.debug(f"Proximity filter initialized: default_radius={self.default_radius_km}km")

    def nearby(
        self,
        jobs: list[JobRecord],
        reference: Optional[Coordinate],
        radius_km: Optional[float] = None,
    ) -> list[ScoredJobRecord]:
        """
        Filter jobs to those near the reference point.

        Args:
            jobs: Candidate jobs.
            reference: The user's coordinate, if known.
            radius_km: Override for the default radius.

        Returns:
            Jobs within the radius, nearest first.
        """
        radius = self.default_radius_km if radius_km is None else radius_km

        if reference is None:
            logger.info("No reference location available, skipping proximity filter")
            return []

        results = filter_by_proximity(jobs, reference, radius)

        without_coords = sum(1 for job in jobs if job.coordinates is None)
        if without_coords:
            logger.debug(f"{without_coords} jobs have no coordinates and were excluded")

        logger.info(f"Proximity filter: {len(results)}/{len(jobs)} jobs within {radius}km")
        return results
