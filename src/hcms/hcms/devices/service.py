from __future__ import annotations

import logging
from typing import Optional

from pymongo.errors import PyMongoError

from ..common.datetime_utils import utc_now_iso
from ..core.exceptions import NotFoundError
from ..database.collections import Collections
from ..database.store import DocumentStore
from .model import DeviceInfo, TrackResult, UserDevice

logger = logging.getLogger(__name__)

BLOCKED_REASON = "This device has been blocked by an administrator. Please contact support."


class DeviceService:
    """Use case: remember which devices staff log in from and let admins block them."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def track_login(self, user_id: str, device: DeviceInfo) -> TrackResult:
        """Record a login from `device`.

        Tracking failures never lock a user out; they are logged and the login
        proceeds.
        """
        try:
            return self._track(user_id, device)
        except PyMongoError:
            logger.exception("Device tracking failed for user %s", user_id)
            return TrackResult(allowed=True)

    def _track(self, user_id: str, device: DeviceInfo) -> TrackResult:
        now = utc_now_iso()
        doc = self._store.find_one(Collections.USER_DEVICES, {"user_id": user_id, "device_id": device.device_id})

        if doc:
            known = UserDevice.from_document(doc)
            if known.is_blocked:
                logger.warning("Blocked device %s rejected for user %s", known.device_id, user_id)
                return TrackResult(allowed=False, reason=BLOCKED_REASON)

            self._store.update_by_id(
                Collections.USER_DEVICES,
                known.id,
                {"last_login": now, "login_count": known.login_count + 1, "ip_address": device.ip_address},
            )
            return TrackResult(allowed=True)

        self._store.insert_one(
            Collections.USER_DEVICES,
            {
                "user_id": user_id,
                "device_id": device.device_id,
                "browser": device.browser,
                "os": device.os,
                "device_type": device.device_type,
                "user_agent": device.user_agent,
                "ip_address": device.ip_address,
                "location": None,
                "last_login": now,
                "login_count": 1,
                "is_blocked": False,
            },
        )
        logger.info("New device registered for user %s (%s, %s)", user_id, device.browser, device.os)
        return TrackResult(allowed=True)

    def list_devices(self, *, user_id: Optional[str] = None) -> list[dict]:
        filter = {"user_id": user_id} if user_id else {}
        devices = self._store.find(Collections.USER_DEVICES, filter, sort={"last_login": -1})

        users = {u["id"]: u for u in self._store.find(Collections.USERS, {})}
        out = []
        for d in devices:
            user = users.get(d.get("user_id"))
            out.append(
                {
                    **d,
                    "user_name": user.get("full_name") if user else "Unknown",
                    "username": user.get("username") if user else None,
                }
            )
        return out

    def set_blocked(self, device_doc_id: str, *, blocked: bool) -> dict:
        if not self._store.update_by_id(Collections.USER_DEVICES, device_doc_id, {"is_blocked": bool(blocked)}):
            raise NotFoundError("Device not found")
        return self._store.find_by_id(Collections.USER_DEVICES, device_doc_id)
