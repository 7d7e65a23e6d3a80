from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class LocationAssignment:
    """Which mandirs / kshetras / villages / mandals a member administers."""

    user_id: str
    assigned_by: str
    mandir_ids: List[str] = field(default_factory=list)
    kshetra_ids: List[str] = field(default_factory=list)
    village_ids: List[str] = field(default_factory=list)
    mandal_ids: List[str] = field(default_factory=list)
    id: Optional[str] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "assigned_by": self.assigned_by,
            "mandir_ids": list(self.mandir_ids),
            "kshetra_ids": list(self.kshetra_ids),
            "village_ids": list(self.village_ids),
            "mandal_ids": list(self.mandal_ids),
        }
