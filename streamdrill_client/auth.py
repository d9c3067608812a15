"""
Request authentication

Every authenticated request carries a Date header and an Authorization
header of the form ``TPK <api key>:<signature>``, where the signature is an
HMAC-SHA1 over the method, the date and the request path.
"""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

# Fixed English names, independent of the process locale
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_http_date(when: Optional[datetime] = None) -> str:
    """
    Format an instant as an RFC 1123 date in UTC.

    Args:
        when: Instant to format (default: now). Naive datetimes are taken as UTC.

    Returns:
        Date string like ``Tue, 03 Mar 2015 10:15:30 UTC``
    """
    if when is None:
        when = datetime.now(timezone.utc)
    elif when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    else:
        when = when.astimezone(timezone.utc)

    return "%s, %02d %s %04d %02d:%02d:%02d UTC" % (
        _WEEKDAYS[when.weekday()], when.day, _MONTHS[when.month - 1],
        when.year, when.hour, when.minute, when.second,
    )


class SignatureGenerator:
    """Generate HMAC signatures for requests."""

    @staticmethod
    def sign(method: str, date: str, path: str, secret: str) -> str:
        """
        Generate the HMAC-SHA1 signature for a request.

        Args:
            method: HTTP method, e.g. ``GET``
            date: Value of the Date header
            path: Request path without query string
            secret: API secret

        Returns:
            Base64-encoded HMAC signature (28 characters)
        """
        message = method + "\n" + date + "\n" + path
        digest = hmac.new(
            secret.encode('utf-8'),
            message.encode('utf-8'),
            hashlib.sha1
        ).digest()
        return base64.b64encode(digest).decode('ascii')
