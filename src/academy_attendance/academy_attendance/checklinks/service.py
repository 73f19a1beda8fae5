from __future__ import annotations

import io
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional, Sequence

import qrcode

from ..common.datetime_utils import now_local, to_local_naive
from ..common.validators import require_non_empty
from ..core.constants import CHECK_LINK_TOKEN_BYTES
from ..core.events import EventBus, LinkUsed
from ..core.exceptions import ExpiredError, InactiveError, NotFoundError, ValidationError
from ..core.session import Caller, require_admin, require_staff
from ..seats.service import SeatLayoutService
from .model import CheckLink
from .repository import CheckLinkRepository

logger = logging.getLogger(__name__)


class CheckLinkService:
    """Issues and validates public check-in links for a seat layout."""

    def __init__(
        self,
        links: CheckLinkRepository,
        layouts: SeatLayoutService,
        events: EventBus,
        *,
        base_url: str = "http://localhost:5000",
    ):
        self._links = links
        self._layouts = layouts
        self._events = events
        self._base_url = base_url.rstrip("/")

    def link_url(self, link: CheckLink) -> str:
        return f"{self._base_url}/check/{link.link_token}"

    def _owned(self, caller: Caller, link_token: str) -> CheckLink:
        link = self._links.get_by_token(link_token)
        if not link or link.academy_id != caller.academy_id:
            raise NotFoundError("Check link not found")
        return link

    def create_link(
        self,
        caller: Caller,
        *,
        seat_layout_id: str,
        title: str,
        description: Optional[str] = None,
        expires_in_days: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> CheckLink:
        require_admin(caller)
        now = now or now_local()
        title = require_non_empty(title, "Title")
        self._layouts.get_layout(caller, seat_layout_id)

        if expires_in_days is not None:
            if expires_at is not None:
                raise ValidationError("Give either expires_in_days or expires_at, not both")
            if int(expires_in_days) <= 0:
                raise ValidationError("expires_in_days must be positive")
            expires_at = now + timedelta(days=int(expires_in_days))
        elif expires_at is not None:
            expires_at = to_local_naive(expires_at)

        link = CheckLink(
            link_id=uuid.uuid4().hex,
            academy_id=caller.academy_id,
            link_token=secrets.token_urlsafe(CHECK_LINK_TOKEN_BYTES),
            seat_layout_id=seat_layout_id,
            title=title,
            description=(description or "").strip() or None,
            is_active=True,
            usage_count=0,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        self._links.create(link)
        logger.info("Check link %s created for layout %s", link.link_id, seat_layout_id)
        return link

    def resolve_link(self, link_token: str, *, now: Optional[datetime] = None) -> CheckLink:
        """Return the usable link behind ``link_token``.

        Expiry is checked before the active flag, so an expired link reports
        ``ExpiredError`` even while it is still switched on.
        """

        now = now or now_local()
        link = self._links.get_by_token(link_token or "")
        if not link:
            raise NotFoundError("Check link not found")
        if link.is_expired_at(now):
            raise ExpiredError("Check link has expired")
        if not link.is_active:
            raise InactiveError("Check link is disabled")
        return link

    def record_usage(self, link_token: str, *, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        link = self._links.get_by_token(link_token)
        count = self._links.increment_usage(link_token=link_token, at=now) if link else None
        if link is None or count is None:
            raise NotFoundError("Check link not found")

        self._events.publish(
            LinkUsed(
                academy_id=link.academy_id,
                occurred_at=now,
                link_id=link.link_id,
                seat_layout_id=link.seat_layout_id,
                usage_count=count,
            )
        )
        return count

    def toggle_link(
        self, caller: Caller, link_token: str, *, is_active: bool, now: Optional[datetime] = None
    ) -> CheckLink:
        require_admin(caller)
        now = now or now_local()
        link = self._owned(caller, link_token)
        if not self._links.set_active(
            academy_id=caller.academy_id, link_token=link_token, is_active=bool(is_active), at=now
        ):
            raise NotFoundError("Check link not found")
        logger.info("Check link %s %s", link.link_id, "enabled" if is_active else "disabled")
        return self._owned(caller, link_token)

    def delete_link(self, caller: Caller, link_token: str) -> None:
        require_admin(caller)
        if not self._links.delete(academy_id=caller.academy_id, link_token=link_token):
            raise NotFoundError("Check link not found")
        logger.info("Check link deleted")

    def list_links(self, caller: Caller) -> Sequence[CheckLink]:
        require_staff(caller)
        return self._links.list_for_academy(academy_id=caller.academy_id)

    def qr_png(self, caller: Caller, link_token: str) -> bytes:
        """PNG QR code encoding the public URL of the link."""

        require_staff(caller)
        link = self._owned(caller, link_token)

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(self.link_url(link))
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
