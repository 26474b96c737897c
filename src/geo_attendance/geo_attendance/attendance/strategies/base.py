from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus
from ...geo.model import GeofenceCheck


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, check: GeofenceCheck) -> StatusDecision:
        raise NotImplementedError
