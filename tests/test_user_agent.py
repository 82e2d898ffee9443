from __future__ import annotations

import pytest

from hcms.devices.user_agent import browser_of, derive_device_id, describe_device, device_type_of, os_of

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.0.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Mobile Safari/537.36"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_TABLET = (
    "Mozilla/5.0 (Linux; Android 13; SM-X700 Tablet) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


@pytest.mark.parametrize(
    "ua, browser, os_name, device_type",
    [
        (CHROME_WINDOWS, "Chrome", "Windows", "desktop"),
        (EDGE_WINDOWS, "Edge", "Windows", "desktop"),
        (SAFARI_IPHONE, "Safari", "iOS", "mobile"),
        (CHROME_ANDROID, "Chrome", "Android", "mobile"),
        (SAFARI_IPAD, "Safari", "iOS", "tablet"),
        (ANDROID_TABLET, "Chrome", "Android", "tablet"),
        (FIREFOX_LINUX, "Firefox", "Linux", "desktop"),
        ("curl/8.0", "Unknown", "Unknown", "desktop"),
    ],
)
def test_user_agent_parsing(ua, browser, os_name, device_type):
    assert browser_of(ua) == browser
    assert os_of(ua) == os_name
    assert device_type_of(ua) == device_type


def test_device_id_is_stable_and_bounded():
    assert derive_device_id(CHROME_WINDOWS, "en") == derive_device_id(CHROME_WINDOWS, "en")
    assert derive_device_id(CHROME_WINDOWS, "en") != derive_device_id(CHROME_WINDOWS, "fr")
    assert len(derive_device_id(CHROME_WINDOWS)) == 64


def test_describe_device_prefers_client_fingerprint():
    info = describe_device(CHROME_WINDOWS, device_id="client-fp", ip_address="10.0.0.1")
    assert info.device_id == "client-fp"
    assert info.browser == "Chrome"
    assert info.ip_address == "10.0.0.1"

    assert describe_device(None).user_agent == ""
