"""Example: drive the service layer directly (no Flask, no MySQL).

Controllers are a thin layer; every rule lives in AttendanceService and below.
"""

from datetime import datetime, timezone

from src.geo_attendance.geo_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from src.geo_attendance.geo_attendance.container import wire
from src.geo_attendance.geo_attendance.core.enums import DeviceVerdict
from src.geo_attendance.geo_attendance.devices.model import DeviceInfo
from src.geo_attendance.geo_attendance.directory.model import Person
from src.geo_attendance.geo_attendance.geo.model import Coordinate, GeofenceSpec

HEAD_OFFICE = GeofenceSpec(center=Coordinate(28.6139, 77.2090), radius_meters=250, label="Head Office")


class Staff:
    def get_by_id(self, person_id):
        return Person(person_id=person_id, full_name="Demo Staff", branch_id=1) if person_id == 1 else None

    def update_last_known_location(self, person_id, position, *, at, event):
        print(f"  last known location of {person_id}: {position.latitude}, {position.longitude} ({event.value})")


class Branches:
    def get_geofence(self, branch_id):
        return HEAD_OFFICE if branch_id == 1 else None


class TrustEveryDevice:
    def is_approved(self, person_id, device_fingerprint):
        return DeviceVerdict.APPROVED

    def request_approval(self, person_id, metadata):
        return 1


def main():
    container = wire(
        attendance_repo=InMemoryAttendanceRepository(),
        persons=Staff(),
        branches=Branches(),
        device_gate=TrustEveryDevice(),
    )
    svc = container.attendance_service
    device = DeviceInfo(device_id="demo-device", browser="Firefox", os="Android")

    record = svc.check_in(
        1, 1, Coordinate(28.6140, 77.2091), device, now=datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc)
    )
    print(f"checked in: status={record.status.value} distance={record.check_in.distance_meters:.1f}m")

    check = svc.update_location(1, Coordinate(28.6200, 77.2090), now=datetime(2026, 2, 2, 12, 0, tzinfo=timezone.utc))
    print(f"tracked: within={check.is_within} distance={check.distance_meters:.1f}m")

    record = svc.check_out(
        1, Coordinate(28.6139, 77.2090), device, now=datetime(2026, 2, 2, 17, 30, tzinfo=timezone.utc)
    )
    print(f"checked out: total_hours={record.total_hours} samples={len(record.location_tracking)}")

    compliance = svc.get_branch_compliance(1)
    print(f"branch compliance: {compliance.percent_within}% of {compliance.total_samples} samples inside")


if __name__ == "__main__":
    main()
