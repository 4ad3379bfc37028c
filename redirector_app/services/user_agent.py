"""
User-agent classification.

Plain case-insensitive substring rules, evaluated top to bottom; the first
matching rule wins. Order is load-bearing: Chrome-based browsers also send
"Safari", Edge also sends "Chrome", Android also sends "Linux".
"""

from typing import Callable, List, Optional, Tuple

from redirector_app.schemas.tracking import DeviceInfo, UNKNOWN


Rule = Tuple[Callable[[str], bool], str]


DEVICE_RULES: List[Rule] = [
    (lambda ua: "mobile" in ua, "Mobile"),
    (lambda ua: "tablet" in ua, "Tablet"),
]

BROWSER_RULES: List[Rule] = [
    (lambda ua: "chrome" in ua and "edg" not in ua, "Chrome"),
    (lambda ua: "safari" in ua and "chrome" not in ua, "Safari"),
    (lambda ua: "firefox" in ua, "Firefox"),
    (lambda ua: "edg" in ua, "Edge"),
    (lambda ua: "opera" in ua or "opr" in ua, "Opera"),
]

OS_RULES: List[Rule] = [
    (lambda ua: "windows" in ua, "Windows"),
    (lambda ua: "mac" in ua, "macOS"),
    (lambda ua: "linux" in ua, "Linux"),
    (lambda ua: "android" in ua, "Android"),
    (lambda ua: "iphone" in ua or "ipad" in ua, "iOS"),
]


def _first_match(rules: List[Rule], ua: str, default: str) -> str:
    for predicate, label in rules:
        if predicate(ua):
            return label
    return default


class UserAgentClassifier:
    """Maps a raw User-Agent header to device/browser/OS labels. Never raises."""

    def __init__(
        self,
        device_rules: List[Rule] = DEVICE_RULES,
        browser_rules: List[Rule] = BROWSER_RULES,
        os_rules: List[Rule] = OS_RULES,
    ):
        self.device_rules = device_rules
        self.browser_rules = browser_rules
        self.os_rules = os_rules

    def classify(self, user_agent: Optional[str]) -> DeviceInfo:
        ua = (user_agent or "").lower()
        return DeviceInfo(
            device=_first_match(self.device_rules, ua, "Desktop"),
            browser=_first_match(self.browser_rules, ua, UNKNOWN),
            os=_first_match(self.os_rules, ua, UNKNOWN),
        )


def classify_user_agent(user_agent: Optional[str]) -> DeviceInfo:
    """Classify with the default rule set"""
    return UserAgentClassifier().classify(user_agent)
