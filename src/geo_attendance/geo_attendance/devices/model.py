from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from ..common.validators import require_non_empty
from ..core.enums import DeviceType, DeviceVerdict
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class DeviceInfo:
    """Device details attached to a check-in or check-out.

    ``device_id`` is the fingerprint the trust gate is queried with.
    """

    device_id: str
    browser: Optional[str] = None
    os: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "DeviceInfo":
        if not isinstance(data, Mapping):
            raise ValidationError("deviceInfo is required")
        return cls(
            device_id=require_non_empty(data.get("deviceId"), "deviceInfo.deviceId"),
            browser=data.get("browser"),
            os=data.get("os"),
        )

    def to_dict(self) -> dict:
        return {"deviceId": self.device_id, "browser": self.browser, "os": self.os}


@dataclass(frozen=True)
class DeviceMetadata:
    """What a person submits when asking for an unrecognized device to be approved."""

    device_id: str
    device_type: DeviceType = DeviceType.MOBILE
    name: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "DeviceMetadata":
        if not isinstance(data, Mapping):
            raise ValidationError("device metadata is required")
        raw_type = data.get("type") or DeviceType.MOBILE.value
        try:
            device_type = DeviceType(raw_type)
        except ValueError:
            raise ValidationError(f"Unsupported device type {raw_type!r}") from None
        return cls(
            device_id=require_non_empty(data.get("deviceId"), "deviceId"),
            device_type=device_type,
            name=data.get("name"),
            browser=data.get("browser"),
            os=data.get("os"),
        )


@dataclass(frozen=True)
class DeviceRecord:
    device_record_id: int
    device_id: str
    owner_id: int
    is_approved: bool = False
    is_blocked: bool = False


@dataclass(frozen=True)
class CachedVerdict:
    """A previously obtained verdict plus when it was obtained."""

    verdict: DeviceVerdict
    cached_at: datetime

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return self.cached_at <= now < self.cached_at + ttl
