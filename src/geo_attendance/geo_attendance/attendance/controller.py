from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, json_endpoint
from ..container import Container
from ..devices.model import DeviceInfo
from ..geo.model import Coordinate, CustomPremise
from .model import AttendanceRecord, CheckEvent, GeofenceCompliance


def _iso(value):
    return value.isoformat() if value is not None else None


def _event_to_dict(event: CheckEvent | None) -> dict:
    if event is None:
        return {"time": None}
    return {
        "time": _iso(event.time),
        "location": {
            **event.location.to_dict(),
            "isWithinGeofence": event.is_within_geofence,
            "distance": round(event.distance_meters, 2),
            "radius": event.radius_meters,
            "locationName": event.location_label,
        },
        "deviceInfo": event.device_info.to_dict() if event.device_info else None,
        "notes": event.notes,
    }


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "id": r.attendance_id,
        "staff": r.person_id,
        "branch": r.branch_id,
        "date": r.work_date.isoformat(),
        "checkIn": _event_to_dict(r.check_in),
        "checkOut": _event_to_dict(r.check_out),
        "status": r.status.value,
        "totalHours": float(r.total_hours) if r.total_hours is not None else 0,
        "geofenceSource": r.geofence.kind.value if r.geofence else None,
        "customPremiseUsed": r.custom_premise_used,
        "customPremiseData": r.custom_premise.to_dict() if r.custom_premise else None,
        "locationTrackingData": [
            {
                "timestamp": _iso(s.timestamp),
                **s.position.to_dict(),
                "isWithinGeofence": s.is_within_geofence,
                "distance": round(s.distance_meters, 2),
            }
            for s in r.location_tracking
        ],
    }


def compliance_to_dict(c: GeofenceCompliance) -> dict:
    return {
        "branch": c.branch_id,
        "startDate": _iso(c.start_date),
        "endDate": _iso(c.end_date),
        "records": c.records,
        "totalSamples": c.total_samples,
        "samplesWithin": c.samples_within,
        "percentWithin": float(c.percent_within) if c.percent_within is not None else None,
    }


def _date_range():
    start = request.args.get("startDate")
    end = request.args.get("endDate")
    return (
        parse_iso_date(start) if start else None,
        parse_iso_date(end) if end else None,
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    @json_endpoint
    def check_in():
        data = json_body()
        record = service.check_in(
            data.get("staffId"),
            data.get("branchId"),
            Coordinate.from_dict(data.get("location")),
            DeviceInfo.from_dict(data.get("deviceInfo")),
            now=container.clock(),
            notes=data.get("notes"),
            custom_premise=CustomPremise.from_dict(data.get("customPremiseData")),
        )
        return jsonify(record_to_dict(record)), 200

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_check_out")
    @json_endpoint
    def check_out():
        data = json_body()
        record = service.check_out(
            data.get("staffId"),
            Coordinate.from_dict(data.get("location")),
            DeviceInfo.from_dict(data.get("deviceInfo")),
            now=container.clock(),
            notes=data.get("notes"),
        )
        return jsonify(record_to_dict(record)), 200

    @app.route("/api/attendance/update-location", methods=["POST"], endpoint="api_update_location")
    @json_endpoint
    def update_location():
        data = json_body()
        check = service.update_location(
            data.get("staffId"),
            Coordinate.from_dict(data.get("location")),
            now=container.clock(),
        )
        return jsonify({
            "success": True,
            "isWithinGeofence": check.is_within,
            "distance": round(check.distance_meters, 2),
        }), 200

    @app.route("/api/attendance/staff/<person_id>", methods=["GET"], endpoint="api_staff_attendance")
    @json_endpoint
    def staff_attendance(person_id):
        start, end = _date_range()
        records = service.get_attendance(person_id, start, end)
        return jsonify([record_to_dict(r) for r in records]), 200

    @app.route("/api/attendance/today/staff/<person_id>", methods=["GET"], endpoint="api_staff_today")
    @json_endpoint
    def staff_today(person_id):
        record = service.get_today_attendance(person_id, now=container.clock())
        return jsonify(record_to_dict(record) if record else None), 200

    @app.route("/api/attendance/branch/<branch_id>", methods=["GET"], endpoint="api_branch_attendance")
    @json_endpoint
    def branch_attendance(branch_id):
        start, end = _date_range()
        records = service.get_branch_attendance(branch_id, start, end)
        return jsonify([record_to_dict(r) for r in records]), 200

    @app.route("/api/attendance/today/branch/<branch_id>", methods=["GET"], endpoint="api_branch_today")
    @json_endpoint
    def branch_today(branch_id):
        records = service.get_today_branch_attendance(branch_id, now=container.clock())
        return jsonify([record_to_dict(r) for r in records]), 200

    @app.route("/api/attendance/branch/<branch_id>/compliance", methods=["GET"], endpoint="api_branch_compliance")
    @json_endpoint
    def branch_compliance(branch_id):
        start, end = _date_range()
        return jsonify(compliance_to_dict(service.get_branch_compliance(branch_id, start, end))), 200
