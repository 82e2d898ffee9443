from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class DeviceInfo:
    """What we know about the client a login comes from."""

    device_id: str
    browser: str
    os: str
    device_type: str
    user_agent: str
    ip_address: Optional[str] = None


@dataclass(frozen=True)
class UserDevice:
    id: str
    user_id: str
    device_id: str
    login_count: int
    is_blocked: bool
    last_login: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UserDevice":
        return cls(
            id=str(doc["id"]),
            user_id=str(doc.get("user_id") or ""),
            device_id=str(doc.get("device_id") or ""),
            login_count=int(doc.get("login_count") or 0),
            is_blocked=bool(doc.get("is_blocked", False)),
            last_login=doc.get("last_login"),
        )


@dataclass(frozen=True)
class TrackResult:
    allowed: bool
    reason: Optional[str] = None
