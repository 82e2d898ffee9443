from __future__ import annotations

import hashlib
import re
from typing import Optional

from ..core.constants import DEVICE_ID_LENGTH
from .model import DeviceInfo

_MOBILE_RE = re.compile(r"mobile", re.IGNORECASE)
_TABLET_RE = re.compile(r"tablet|ipad", re.IGNORECASE)

# First match wins; Edge and Chrome both claim "Safari", Edge also claims "Chrome".
_BROWSERS = (
    ("Edg", "Edge"),
    ("Firefox", "Firefox"),
    ("Chrome", "Chrome"),
    ("Safari", "Safari"),
)

# Android claims "Linux", iOS claims "Mac OS X".
_OPERATING_SYSTEMS = (
    ("Windows", "Windows"),
    ("Android", "Android"),
    ("iPhone", "iOS"),
    ("iPad", "iOS"),
    ("iOS", "iOS"),
    ("Mac", "macOS"),
    ("Linux", "Linux"),
)


def device_type_of(user_agent: str) -> str:
    # iPads also send "Mobile/..."
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def browser_of(user_agent: str) -> str:
    for token, name in _BROWSERS:
        if token in user_agent:
            return name
    return "Unknown"


def os_of(user_agent: str) -> str:
    for token, name in _OPERATING_SYSTEMS:
        if token in user_agent:
            return name
    return "Unknown"


def derive_device_id(user_agent: str, accept_language: str = "") -> str:
    """Stable id for clients that do not send their own fingerprint."""
    digest = hashlib.sha256(f"{user_agent}|{accept_language}".encode("utf-8")).hexdigest()
    return digest[:DEVICE_ID_LENGTH]


def describe_device(
    user_agent: Optional[str],
    *,
    device_id: Optional[str] = None,
    accept_language: str = "",
    ip_address: Optional[str] = None,
) -> DeviceInfo:
    ua = user_agent or ""
    return DeviceInfo(
        device_id=(device_id or derive_device_id(ua, accept_language))[:DEVICE_ID_LENGTH],
        browser=browser_of(ua),
        os=os_of(ua),
        device_type=device_type_of(ua),
        user_agent=ua,
        ip_address=ip_address,
    )
