from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Person:
    """Domain entity: a staff member who records attendance."""

    person_id: int
    full_name: str
    branch_id: Optional[int]
    is_active: bool = True
