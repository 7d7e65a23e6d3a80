"""Field definitions of the master-data tables.

The generic master-data service validates input against these definitions and the
MySQL repository only interpolates table / column names that appear here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.enums import MasterTable
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    # text | textarea | email | phone | date | time | number | boolean | select
    type: str = "text"
    required: bool = False
    foreign_key: Optional[str] = None
    # column width for text fields; None means MAX_TEXT_LENGTH
    max_length: Optional[int] = None


@dataclass(frozen=True)
class TableSpec:
    table: str
    title: str
    fields: Tuple[FieldSpec, ...]
    label_column: str = "name"
    parent_column: Optional[str] = None
    # custom_roles lists inactive rows too
    active_only_listing: bool = True

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def field(self, name: str) -> Optional[FieldSpec]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


_CONTACT = (
    FieldSpec("contact_person", "Contact Person"),
    FieldSpec("contact_number", "Contact Number", "phone"),
)

TABLE_SPECS: Dict[str, TableSpec] = {
    MasterTable.MANDIRS.value: TableSpec(
        table="mandirs",
        title="Mandir",
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("description", "Description", "textarea"),
            FieldSpec("address", "Address"),
            *_CONTACT,
            FieldSpec("email", "Email", "email"),
            FieldSpec("established_date", "Established Date", "date"),
        ),
    ),
    MasterTable.KSHETRAS.value: TableSpec(
        table="kshetras",
        title="Kshetra",
        fields=(
            FieldSpec("mandir_id", "Mandir", "select", required=True, foreign_key="mandirs"),
            FieldSpec("name", "Name", required=True),
            FieldSpec("description", "Description", "textarea"),
            *_CONTACT,
        ),
        parent_column="mandir_id",
    ),
    MasterTable.VILLAGES.value: TableSpec(
        table="villages",
        title="Village",
        fields=(
            FieldSpec("kshetra_id", "Kshetra", "select", required=True, foreign_key="kshetras"),
            FieldSpec("name", "Name", required=True),
            FieldSpec("district", "District"),
            FieldSpec("state", "State"),
            FieldSpec("pincode", "Pincode", max_length=10),
            FieldSpec("population", "Population", "number"),
            *_CONTACT,
        ),
        parent_column="kshetra_id",
    ),
    MasterTable.MANDALS.value: TableSpec(
        table="mandals",
        title="Mandal",
        fields=(
            FieldSpec("village_id", "Village", "select", required=True, foreign_key="villages"),
            FieldSpec("name", "Name", required=True),
            FieldSpec("description", "Description", "textarea"),
            FieldSpec("meeting_day", "Meeting Day", max_length=20),
            FieldSpec("meeting_time", "Meeting Time", "time"),
            *_CONTACT,
        ),
        parent_column="village_id",
    ),
    MasterTable.PROFESSIONS.value: TableSpec(
        table="professions",
        title="Profession",
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("description", "Description", "textarea"),
        ),
    ),
    MasterTable.SEVA_TYPES.value: TableSpec(
        table="seva_types",
        title="Seva Type",
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("description", "Description", "textarea"),
        ),
    ),
    MasterTable.CUSTOM_ROLES.value: TableSpec(
        table="custom_roles",
        title="Custom Role",
        fields=(
            FieldSpec("role_name", "Role Name", required=True, max_length=64),
            FieldSpec("display_name", "Display Name", required=True),
            FieldSpec("description", "Description", "textarea"),
            FieldSpec("level", "Level", "number"),
        ),
        label_column="display_name",
        active_only_listing=False,
    ),
}


def get_table_spec(table: str) -> TableSpec:
    spec = TABLE_SPECS.get(table)
    if spec is None:
        raise ValidationError(f"Unknown table: {table}")
    return spec
