from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

# module -> action -> allowed
PermissionMap = Dict[str, Dict[str, bool]]


@dataclass(frozen=True)
class PermissionFlags:
    view: bool = False
    add: bool = False
    edit: bool = False
    delete: bool = False
    export: bool = False

    @classmethod
    def all(cls) -> "PermissionFlags":
        return cls(view=True, add=True, edit=True, delete=True, export=True)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PermissionFlags":
        """Build from `can_*` columns (or plain action keys); NULL counts as False."""

        def flag(action: str) -> bool:
            value = row.get(f"can_{action}", row.get(action))
            return bool(value) if value is not None else False

        return cls(
            view=flag("view"),
            add=flag("add"),
            edit=flag("edit"),
            delete=flag("delete"),
            export=flag("export"),
        )

    def any(self) -> bool:
        return self.view or self.add or self.edit or self.delete or self.export

    def as_dict(self) -> Dict[str, bool]:
        return {
            "view": self.view,
            "add": self.add,
            "edit": self.edit,
            "delete": self.delete,
            "export": self.export,
        }


@dataclass(frozen=True)
class ModulePermission:
    """A permission row for one module, owned either by a role or by a single user."""

    module_name: str
    flags: PermissionFlags
    role: Optional[str] = None
    user_id: Optional[str] = None
