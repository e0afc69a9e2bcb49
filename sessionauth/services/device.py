"""Device identity derived from a User-Agent header."""

from typing import Callable, NamedTuple

from user_agents import parse

UNKNOWN = "Unknown"
DEFAULT_DEVICE = "Desktop"

# ua-parser reports unrecognised families as "Other"
_UNRECOGNISED = {"", "Other"}


class DeviceIdentity(NamedTuple):
    """(device, browser, os): the key that decides session reuse."""

    device: str
    browser: str
    os: str


UserAgentParser = Callable[[str | None], DeviceIdentity]


def parse_user_agent(user_agent: str | None) -> DeviceIdentity:
    """Parse a User-Agent string into a device identity.

    device: the device model, else "Mobile"/"Tablet" for those form factors,
        else "Desktop"
    browser: the browser family, else "Unknown"
    os: "<family> <version>", else "Unknown"
    """
    ua = parse(user_agent or "")

    device = ua.device.model or ""
    if device in _UNRECOGNISED:
        if ua.is_tablet:
            device = "Tablet"
        elif ua.is_mobile:
            device = "Mobile"
        else:
            device = DEFAULT_DEVICE

    browser = ua.browser.family
    if browser in _UNRECOGNISED:
        browser = UNKNOWN

    os_name = UNKNOWN
    if ua.os.family not in _UNRECOGNISED:
        os_name = f"{ua.os.family} {ua.os.version_string or ''}".strip()

    return DeviceIdentity(device=device[:255], browser=browser[:255], os=os_name[:255])
