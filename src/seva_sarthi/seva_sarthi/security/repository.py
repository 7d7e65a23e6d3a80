from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from .model import SecurityEvent


class SecurityEventRepository(Protocol):
    def insert(
        self,
        *,
        event_type: str,
        user_id: Optional[str],
        details: Dict[str, Any],
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> str:
        raise NotImplementedError

    def list_recent(self, *, event_type: Optional[str] = None, limit: int = 100) -> Sequence[SecurityEvent]:
        raise NotImplementedError
