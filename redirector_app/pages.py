"""
HTML pages served by the redirect route.

Only the verifying page carries the target URL; the 404/410/403/500 pages
are static and never reveal where a link points.
"""

import json


_BASE_STYLE = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
        display: flex;
        align-items: center;
        justify-content: center;
        min-height: 100vh;
        padding: 2rem;
        color: #fff;
        background: %(background)s;
    }
    .box {
        max-width: 560px;
        width: 100%%;
        padding: 48px;
        border-radius: 24px;
        text-align: center;
        background: rgba(255, 255, 255, 0.08);
        border: 1px solid rgba(255, 255, 255, 0.15);
        box-shadow: 0 20px 60px rgba(0, 0, 0, 0.3);
    }
    h1 { font-size: 2rem; margin-bottom: 1rem; }
    p { opacity: 0.9; line-height: 1.6; }
"""

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>%(title)s</title>
    <style>%(style)s%(extra_style)s</style>
</head>
<body>
    <div class="box">
%(body)s
    </div>
%(script)s
</body>
</html>
"""

_GRADIENT = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"
_DARK = "#0a0a0a"


def _render(title: str, body: str, background: str, extra_style: str = "", script: str = "") -> str:
    return _PAGE % {
        "title": title,
        "style": _BASE_STYLE % {"background": background},
        "extra_style": extra_style,
        "body": body,
        "script": script,
    }


NOT_FOUND_PAGE = _render(
    "404 - Link Not Found",
    "        <h1>🔍 404 - Link Not Found</h1>\n"
    "        <p>This short link doesn't exist or has been deleted.</p>",
    _GRADIENT,
)

EXPIRED_PAGE = _render(
    "Link Expired",
    "        <h1>🔒 Link Expired</h1>\n"
    "        <p>This link has expired and can no longer be used.</p>",
    _DARK,
)

BYPASS_PAGE = _render(
    "Bypass Detected",
    "        <h1>⚠️ Bypass Detected</h1>\n"
    "        <p>Access denied. Please open this link from the page that shared it.</p>",
    _GRADIENT,
)

ERROR_PAGE = _render(
    "Something went wrong",
    "        <h1>Internal server error</h1>\n"
    "        <p>Please try again in a moment.</p>",
    _DARK,
)

_COUNTDOWN_STYLE = """
    .countdown { font-size: 5rem; font-weight: 700; margin: 2rem 0; }
    .skip-btn {
        padding: 16px 40px;
        border: none;
        border-radius: 12px;
        color: #fff;
        font-weight: 700;
        cursor: pointer;
        background: linear-gradient(135deg, #667eea, #764ba2);
    }
"""

_COUNTDOWN_SCRIPT = """    <script>
      let count = %(delay)d;
      const targetUrl = %(target)s;
      function redirect() { window.location.href = targetUrl; }
      const timer = setInterval(() => {
        count--;
        document.getElementById('countdown').textContent = count;
        if (count <= 0) { clearInterval(timer); redirect(); }
      }, 1000);
    </script>"""


def js_string_literal(value: str) -> str:
    """JSON-encode for an inline <script>; '</' is escaped so the tag can't be closed early"""
    return json.dumps(value).replace("</", "<\\/")


def render_verifying_page(target_url: str, delay_seconds: int = 3) -> str:
    """Interstitial that navigates to target_url after a short countdown"""
    body = (
        "        <h1>verifying You...</h1>\n"
        f"        <div class=\"countdown\" id=\"countdown\">{delay_seconds}</div>\n"
        "        <p>Please wait while we are verifying you</p>\n"
        "        <button class=\"skip-btn\" onclick=\"redirect()\">Continue</button>"
    )
    script = _COUNTDOWN_SCRIPT % {"delay": delay_seconds, "target": js_string_literal(target_url)}
    return _render("verifying...", body, _DARK, _COUNTDOWN_STYLE, script)
