from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import DayBoundary, now_utc
from .core.constants import DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS, DEFAULT_DEVICE_VERDICT_TTL_HOURS
from .database.connection import DatabaseConnection
from .devices.gate import DeviceApprovalGuard, DeviceTrustGate, InMemoryVerdictCache
from .devices.mysql_device_repository import MySQLDeviceTrustGate
from .directory.mysql_directory_repository import MySQLBranchDirectory, MySQLPersonDirectory
from .directory.repository import BranchDirectory, PersonDirectory


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    persons: PersonDirectory
    branches: BranchDirectory
    device_gate: DeviceTrustGate

    device_guard: DeviceApprovalGuard
    attendance_service: AttendanceService

    clock: Callable[[], datetime] = now_utc


def wire(
    *,
    attendance_repo: AttendanceRepository,
    persons: PersonDirectory,
    branches: BranchDirectory,
    device_gate: DeviceTrustGate,
    day_boundary: DayBoundary | None = None,
    device_timeout_seconds: float = DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS,
    device_verdict_ttl: timedelta = timedelta(hours=DEFAULT_DEVICE_VERDICT_TTL_HOURS),
    clock: Callable[[], datetime] = now_utc,
) -> Container:
    device_guard = DeviceApprovalGuard(
        device_gate,
        InMemoryVerdictCache(),
        timeout_seconds=device_timeout_seconds,
        ttl=device_verdict_ttl,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        persons,
        branches,
        device_guard,
        day_boundary=day_boundary,
    )
    return Container(
        attendance_repo=attendance_repo,
        persons=persons,
        branches=branches,
        device_gate=device_gate,
        device_guard=device_guard,
        attendance_service=attendance_service,
        clock=clock,
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection.from_dict(db_config)

    return wire(
        attendance_repo=MySQLAttendanceRepository(conn),
        persons=MySQLPersonDirectory(conn),
        branches=MySQLBranchDirectory(conn),
        device_gate=MySQLDeviceTrustGate(conn),
        day_boundary=DayBoundary.from_name(getattr(settings, "DAY_BOUNDARY_TZ", "UTC")),
        device_timeout_seconds=float(
            getattr(settings, "DEVICE_CHECK_TIMEOUT_SECONDS", DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS)
        ),
        device_verdict_ttl=timedelta(
            hours=float(getattr(settings, "DEVICE_VERDICT_TTL_HOURS", DEFAULT_DEVICE_VERDICT_TTL_HOURS))
        ),
    )
