from __future__ import annotations

import json
from typing import Any, Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, new_id
from .model import AdditionalDetails
from .repository import AdditionalDetailsRepository


def _json(value: Any, empty: Any) -> Any:
    if value is None:
        return empty
    if isinstance(value, (bytes, str)):
        return json.loads(value or "null") or empty
    return value


def _to_details(row: Dict[str, Any]) -> AdditionalDetails:
    return AdditionalDetails(
        id=row["id"],
        karyakar_id=row["karyakar_id"],
        education_level=row.get("education_level"),
        education_institution=row.get("education_institution"),
        education_field=row.get("education_field"),
        vehicle_types=[str(v) for v in _json(row.get("vehicle_types"), [])],
        blood_group=row.get("blood_group"),
        marital_status=row.get("marital_status"),
        satsangi_category=row.get("satsangi_category"),
        skills=[str(s) for s in _json(row.get("skills"), [])],
        additional_info=dict(_json(row.get("additional_info"), {})),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLAdditionalDetailsRepository(AdditionalDetailsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, karyakar_id: str) -> Optional[AdditionalDetails]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM karyakar_additional_details WHERE karyakar_id=%s", (karyakar_id,))
            row = fetchone(cur)
        return _to_details(row) if row else None

    def upsert(self, details: AdditionalDetails) -> None:
        d = details
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO karyakar_additional_details(
                    id, karyakar_id, education_level, education_institution, education_field,
                    vehicle_types, blood_group, marital_status, satsangi_category, skills, additional_info
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    education_level=VALUES(education_level),
                    education_institution=VALUES(education_institution),
                    education_field=VALUES(education_field),
                    vehicle_types=VALUES(vehicle_types),
                    blood_group=VALUES(blood_group),
                    marital_status=VALUES(marital_status),
                    satsangi_category=VALUES(satsangi_category),
                    skills=VALUES(skills),
                    additional_info=VALUES(additional_info)
                """,
                (
                    d.id or new_id(),
                    d.karyakar_id,
                    d.education_level,
                    d.education_institution,
                    d.education_field,
                    json.dumps(list(d.vehicle_types)),
                    d.blood_group,
                    d.marital_status,
                    d.satsangi_category,
                    json.dumps(list(d.skills)),
                    json.dumps(dict(d.additional_info)),
                ),
            )
