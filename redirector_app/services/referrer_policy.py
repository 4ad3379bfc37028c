"""
Partner referrer policy.

A partner-gated link may only be followed from a page on the partner's
domain. Both sides are normalised the same way before comparing:

1. strip a leading http:// or https://
2. strip a leading "www."
3. strip one trailing slash
4. lower-case

A referrer is accepted when it equals the partner domain, starts with
"<domain>/", or contains the domain anywhere. The last rule is permissive
on purpose: it admits some non-partner referrers (e.g.
"evil.com/?ref=example.com") rather than blocking partner traffic with odd
referrer formatting. Tightening it is a policy decision; tests pin the
current behaviour.
"""

import re
from typing import Optional


_SCHEME = re.compile(r"^https?://")
_WWW = re.compile(r"^www\.")
_TRAILING_SLASH = re.compile(r"/$")


def normalize(value: Optional[str]) -> str:
    """Normalise a domain or referrer for comparison"""
    value = value or ""
    value = _SCHEME.sub("", value)
    value = _WWW.sub("", value)
    value = _TRAILING_SLASH.sub("", value)
    return value.lower()


class ReferrerPolicy:
    """Stateless gate evaluated on every request to a partner link."""

    def is_allowed(self, partner_domain: str, referrer: Optional[str]) -> bool:
        partner = normalize(partner_domain)
        ref = normalize(referrer)

        return (
            ref == partner
            or ref.startswith(partner + "/")
            or partner in ref
        )
