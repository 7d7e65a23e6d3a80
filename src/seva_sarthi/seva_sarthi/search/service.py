from __future__ import annotations

from typing import Dict, List

from ..core.constants import SEARCH_MIN_TERM_LENGTH, SEARCH_PRIMARY_LIMIT, SEARCH_SECONDARY_LIMIT
from ..core.enums import MasterTable
from .repository import SearchRepository

_SECONDARY_LOCATIONS = (MasterTable.KSHETRAS.value, MasterTable.VILLAGES.value, MasterTable.MANDALS.value)


class SearchService:
    def __init__(self, search: SearchRepository):
        self._search = search

    def global_search(self, term: str) -> List[Dict[str, str]]:
        """Search members, tasks and locations; results carry `type`, `id`, `title`, `subtitle`."""

        term = (term or "").strip()
        if len(term) < SEARCH_MIN_TERM_LENGTH:
            return []

        results: List[Dict[str, str]] = []
        for p in self._search.search_profiles(term, limit=SEARCH_PRIMARY_LIMIT):
            results.append(
                {
                    "type": "karyakar",
                    "id": p["id"],
                    "title": p["full_name"],
                    "subtitle": p.get("email") or p.get("mobile_number") or "",
                }
            )
        for t in self._search.search_tasks(term, limit=SEARCH_PRIMARY_LIMIT):
            results.append({"type": "task", "id": t["id"], "title": t["title"], "subtitle": t.get("status") or ""})
        for m in self._search.search_locations(MasterTable.MANDIRS.value, term, limit=SEARCH_SECONDARY_LIMIT):
            results.append({"type": "mandir", "id": m["id"], "title": m["name"], "subtitle": m.get("detail") or ""})
        for table in _SECONDARY_LOCATIONS:
            for row in self._search.search_locations(table, term, limit=SEARCH_SECONDARY_LIMIT):
                results.append(
                    {"type": table[:-1], "id": row["id"], "title": row["name"], "subtitle": row.get("detail") or ""}
                )
        return results
