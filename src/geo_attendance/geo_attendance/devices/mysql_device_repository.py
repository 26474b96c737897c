from __future__ import annotations

from typing import Optional

import mysql.connector

from ..core.enums import DeviceVerdict
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .gate import DeviceTrustGate
from .model import DeviceMetadata, DeviceRecord


class MySQLDeviceTrustGate(DeviceTrustGate):
    """Verdicts derived from the ``devices`` registry table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_fingerprint(self, device_fingerprint: str) -> Optional[DeviceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT device_record_id, device_id, owner_id, is_approved, is_blocked
                FROM devices
                WHERE device_id=%s
                """,
                (device_fingerprint,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return DeviceRecord(
                device_record_id=int(r["device_record_id"]),
                device_id=r["device_id"],
                owner_id=int(r["owner_id"]),
                is_approved=bool(r["is_approved"]),
                is_blocked=bool(r["is_blocked"]),
            )

    def is_approved(self, person_id: int, device_fingerprint: str) -> DeviceVerdict:
        device = self.get_by_fingerprint(device_fingerprint)
        if device is None:
            return DeviceVerdict.NEW
        if device.owner_id != int(person_id) or device.is_blocked:
            return DeviceVerdict.UNKNOWN
        if not device.is_approved:
            return DeviceVerdict.PENDING
        return DeviceVerdict.APPROVED

    def request_approval(self, person_id: int, metadata: DeviceMetadata) -> int:
        existing = self.get_by_fingerprint(metadata.device_id)
        if existing is not None:
            if existing.owner_id != int(person_id):
                raise ValidationError("Device already registered to another account")
            return existing.device_record_id

        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO devices(device_id, owner_id, device_type, name, browser, os, is_approved)
                    VALUES(%s,%s,%s,%s,%s,%s,0)
                    """,
                    (
                        metadata.device_id,
                        int(person_id),
                        metadata.device_type.value,
                        metadata.name or f"{metadata.device_type.value} device",
                        metadata.browser,
                        metadata.os,
                    ),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise ValidationError("Device already registered") from exc
                raise
            return int(cur.lastrowid)
