from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CheckLink:
    """Opaque, time-boxed, revocable token for unauthenticated check-in/out."""

    link_id: str
    academy_id: str
    link_token: str
    seat_layout_id: str
    title: str
    is_active: bool
    usage_count: int
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self, *, url: Optional[str] = None) -> dict:
        return {
            "id": self.link_id,
            "linkToken": self.link_token,
            "url": url,
            "seatLayoutId": self.seat_layout_id,
            "title": self.title,
            "description": self.description,
            "isActive": self.is_active,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "usageCount": self.usage_count,
            "lastUsedAt": self.last_used_at.isoformat() if self.last_used_at else None,
            "createdAt": self.created_at.isoformat(),
        }
