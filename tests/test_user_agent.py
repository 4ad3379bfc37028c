"""
Tests for user-agent classification.
"""
from redirector_app.services.user_agent import UserAgentClassifier, classify_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
EDGE_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
OPERA_PRESTO = "Opera/9.80 (Windows NT 6.1; U; en) Presto/2.12.388 Version/12.16"


class TestBrowserPriority:
    """Engine tokens overlap, so rule order decides the label"""

    def test_chrome_wins_over_safari(self):
        """Chrome UAs also contain 'Safari'"""
        assert classify_user_agent(CHROME_WINDOWS).browser == "Chrome"

    def test_edge_is_not_chrome(self):
        """Edge UAs also contain 'Chrome'"""
        assert classify_user_agent(EDGE_WINDOWS).browser == "Edge"

    def test_safari(self):
        assert classify_user_agent(SAFARI_IPHONE).browser == "Safari"

    def test_firefox(self):
        assert classify_user_agent(FIREFOX_LINUX).browser == "Firefox"

    def test_opera(self):
        assert classify_user_agent(OPERA_PRESTO).browser == "Opera"

    def test_chromium_opera_reports_chrome(self):
        """Modern Opera sends Chrome + OPR tokens; the Chrome rule comes first"""
        ua = CHROME_WINDOWS + " OPR/106.0.0.0"
        assert classify_user_agent(ua).browser == "Chrome"


class TestDeviceAndOS:
    def test_desktop_windows(self):
        info = classify_user_agent(CHROME_WINDOWS)
        assert info.device == "Desktop"
        assert info.os == "Windows"

    def test_iphone_is_mobile(self):
        """iPhone UAs mention 'Mac OS X', and 'mac' is checked before iOS"""
        info = classify_user_agent(SAFARI_IPHONE)
        assert info.device == "Mobile"
        assert info.os == "macOS"

    def test_android_reports_linux(self):
        """Android UAs mention 'Linux', which is checked first"""
        info = classify_user_agent(CHROME_ANDROID)
        assert info.device == "Mobile"
        assert info.os == "Linux"

    def test_tablet(self):
        info = classify_user_agent("SomeReader/1.0 (Tablet; Android)")
        assert info.device == "Tablet"
        assert info.os == "Android"

    def test_ipad_without_mac_token(self):
        assert classify_user_agent("AppClient/2.1 (iPad; iOS 17)").os == "iOS"

    def test_case_insensitive(self):
        info = classify_user_agent("FIREFOX WINDOWS MOBILE")
        assert info.browser == "Firefox"
        assert info.os == "Windows"
        assert info.device == "Mobile"


class TestDefaults:
    def test_empty_string(self):
        info = classify_user_agent("")
        assert info.device == "Desktop"
        assert info.browser == "Unknown"
        assert info.os == "Unknown"

    def test_none(self):
        info = UserAgentClassifier().classify(None)
        assert (info.device, info.browser, info.os) == ("Desktop", "Unknown", "Unknown")

    def test_deterministic(self):
        classifier = UserAgentClassifier()
        assert classifier.classify(EDGE_WINDOWS) == classifier.classify(EDGE_WINDOWS)
