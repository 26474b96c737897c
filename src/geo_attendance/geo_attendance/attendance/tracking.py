"""Location tracking trail: append rules and compliance statistics.

The trail is audit data only; nothing in here feeds back into a state transition.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from ..geo.model import Coordinate, GeofenceCheck
from .model import AttendanceRecord, GeofenceCompliance, LocationSample


def make_sample(*, position: Coordinate, check: GeofenceCheck, now: datetime) -> LocationSample:
    return LocationSample(
        timestamp=now,
        position=position,
        is_within_geofence=check.is_within,
        distance_meters=check.distance_meters,
    )


def place_after(last_timestamp: Optional[datetime], sample: LocationSample) -> LocationSample:
    """Position a sample behind the current tail of the trail.

    Trail order is commit order. Requests read their clock before the record is locked, so a
    sample can arrive stamped just before one that committed first; it is moved up to the
    tail's instant rather than rejected.
    """
    if last_timestamp is not None and sample.timestamp < last_timestamp:
        return replace(sample, timestamp=last_timestamp)
    return sample


def append_sample(trail: Tuple[LocationSample, ...], sample: LocationSample) -> Tuple[LocationSample, ...]:
    return trail + (place_after(trail[-1].timestamp if trail else None, sample),)


def compliance_summary(
    branch_id: int,
    records: Iterable[AttendanceRecord],
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> GeofenceCompliance:
    count = 0
    total = 0
    within = 0
    for record in records:
        count += 1
        total += len(record.location_tracking)
        within += sum(1 for s in record.location_tracking if s.is_within_geofence)

    percent = None
    if total:
        percent = (Decimal(within) * 100 / Decimal(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return GeofenceCompliance(
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        records=count,
        total_samples=total,
        samples_within=within,
        percent_within=percent,
    )
