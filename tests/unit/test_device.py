"""Tests for User-Agent parsing into device identities."""

from sessionauth.services.device import DeviceIdentity, parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class TestParseUserAgent:
    def test_desktop_chrome(self):
        identity = parse_user_agent(CHROME_WINDOWS)

        assert identity.device == "Desktop"
        assert identity.browser == "Chrome"
        assert identity.os.startswith("Windows")

    def test_desktop_firefox(self):
        identity = parse_user_agent(FIREFOX_LINUX)

        assert identity.device == "Desktop"
        assert identity.browser == "Firefox"
        assert identity.os.startswith("Linux")

    def test_phone_reports_model(self):
        identity = parse_user_agent(SAFARI_IPHONE)

        assert identity.device == "iPhone"
        assert "Safari" in identity.browser
        assert identity.os.startswith("iOS")

    def test_missing_header_defaults(self):
        """No User-Agent: device falls back to Desktop, the rest to Unknown."""
        assert parse_user_agent(None) == DeviceIdentity("Desktop", "Unknown", "Unknown")
        assert parse_user_agent("") == DeviceIdentity("Desktop", "Unknown", "Unknown")

    def test_unparsable_header_defaults(self):
        identity = parse_user_agent("definitely not a browser")

        assert identity.browser == "Unknown"
        assert identity.os == "Unknown"

    def test_same_agent_same_identity(self):
        assert parse_user_agent(CHROME_WINDOWS) == parse_user_agent(CHROME_WINDOWS)

    def test_different_browsers_different_identity(self):
        assert parse_user_agent(CHROME_WINDOWS) != parse_user_agent(FIREFOX_LINUX)
