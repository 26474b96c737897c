from __future__ import annotations

import pytest

from src.geo_attendance.geo_attendance.core.enums import DeviceType, DeviceVerdict
from src.geo_attendance.geo_attendance.core.exceptions import ValidationError
from src.geo_attendance.geo_attendance.devices.model import DeviceMetadata
from src.geo_attendance.geo_attendance.devices.mysql_device_repository import MySQLDeviceTrustGate


def _row(owner_id=1, approved=True, blocked=False):
    return {
        "device_record_id": 5,
        "device_id": "phone-1",
        "owner_id": owner_id,
        "is_approved": int(approved),
        "is_blocked": int(blocked),
    }


@pytest.mark.parametrize(
    "rows, verdict",
    [
        ([], DeviceVerdict.NEW),
        ([_row(owner_id=2)], DeviceVerdict.UNKNOWN),
        ([_row(blocked=True)], DeviceVerdict.UNKNOWN),
        ([_row(approved=False)], DeviceVerdict.PENDING),
        ([_row()], DeviceVerdict.APPROVED),
    ],
)
def test_verdict_from_registry_row(fake_db, rows, verdict):
    fake_db.results = [rows]

    assert MySQLDeviceTrustGate(fake_db).is_approved(1, "phone-1") == verdict
    assert fake_db.executed[0][1] == ("phone-1",)


def test_request_approval_registers_new_device(fake_db):
    fake_db.results = [[], []]
    fake_db.lastrowid = 9

    record_id = MySQLDeviceTrustGate(fake_db).request_approval(
        1, DeviceMetadata(device_id="tablet-9", device_type=DeviceType.TABLET)
    )

    sql, params = fake_db.executed[1]
    assert record_id == 9
    assert sql.startswith("INSERT INTO devices")
    assert params[:4] == ("tablet-9", 1, "tablet", "tablet device")


def test_request_approval_is_idempotent_for_owner(fake_db):
    fake_db.results = [[_row(approved=False)]]

    assert MySQLDeviceTrustGate(fake_db).request_approval(1, DeviceMetadata(device_id="phone-1")) == 5
    assert len(fake_db.executed) == 1


def test_request_approval_rejects_device_of_another_account(fake_db):
    fake_db.results = [[_row(owner_id=2)]]

    with pytest.raises(ValidationError):
        MySQLDeviceTrustGate(fake_db).request_approval(1, DeviceMetadata(device_id="phone-1"))
