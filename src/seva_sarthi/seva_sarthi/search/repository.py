from __future__ import annotations

from typing import Protocol, Sequence


class SearchRepository(Protocol):
    def search_profiles(self, term: str, *, limit: int) -> Sequence[dict]:
        """Match full name / email / mobile / notes, case-insensitive."""

        raise NotImplementedError

    def search_tasks(self, term: str, *, limit: int) -> Sequence[dict]:
        raise NotImplementedError

    def search_locations(self, table: str, term: str, *, limit: int) -> Sequence[dict]:
        """Match `name` of mandirs / kshetras / villages / mandals."""

        raise NotImplementedError
