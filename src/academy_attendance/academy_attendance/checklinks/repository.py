from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import CheckLink


class CheckLinkRepository(Protocol):
    def get_by_token(self, link_token: str) -> Optional[CheckLink]:
        raise NotImplementedError

    def list_for_academy(self, *, academy_id: str) -> Sequence[CheckLink]:
        raise NotImplementedError

    def create(self, link: CheckLink) -> None:
        raise NotImplementedError

    def set_active(self, *, academy_id: str, link_token: str, is_active: bool, at: datetime) -> bool:
        raise NotImplementedError

    def delete(self, *, academy_id: str, link_token: str) -> bool:
        raise NotImplementedError

    def increment_usage(self, *, link_token: str, at: datetime) -> Optional[int]:
        """Atomically bump ``usage_count``; returns the new count, or None if the link is gone."""

        raise NotImplementedError
