"""Redaction of rider/driver contact details and credentials in log output."""

import logging
import re

# (pattern, replacement), applied in order
REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(access_token=)[^&\s\"']+"), r"\1[TOKEN]"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE), r"\1[TOKEN]"),
    (re.compile(r"(apikey\.)[^\s,\"']+"), r"\1[TOKEN]"),
    (re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+"), "[EMAIL]"),
    # International (+20 10 1234 5678) and local (010-1234-5678, 555-123-4567) numbers
    (re.compile(r"\+\d{1,3}[\s-]?\d{2,4}[\s-]?\d{3,4}[\s-]?\d{3,4}"), "[PHONE]"),
    (re.compile(r"(?<![\d.])0?\d{2,3}[-\s]?\d{3,4}[-\s]?\d{4}(?![\d.])"), "[PHONE]"),
)


def redact(text: str) -> str:
    for pattern, replacement in REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class PIIFilter(logging.Filter):
    """Masks contact details and credentials in messages and string arguments.

    Coordinates are left intact: SOS and routing logs need them, and the
    phone patterns never match across a decimal point.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        return True
