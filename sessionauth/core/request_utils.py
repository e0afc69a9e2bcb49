"""Request utility functions for handling common request operations."""

from fastapi import Request

UNKNOWN_IP = "Unknown"


def get_client_ip(request: Request) -> str:
    """Get the client IP address recorded on a session.

    Priority order:
    1. First address in X-Forwarded-For (set by the fronting proxy)
    2. Direct client connection
    3. "Unknown"

    The value is informational only and is shown in the device list.
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_IP
