"""
Helpers for logging user-controlled values safely.
"""

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r'[\x00-\x1f\x7f-\x9f]')
# Matches Unicode line separators (LINE SEPARATOR and PARAGRAPH SEPARATOR)
_UNICODE_NEWLINES_RE = re.compile(r'[\u2028\u2029]')
# Matches explicit CR, LF, and CRLF for maximal coverage
_STANDARD_NEWLINES_RE = re.compile(r'(\r\n|\r|\n)')
_APIKEY_QUERY_RE = re.compile(r'(apikey|access_token)=[^&\s]+', re.IGNORECASE)


def sanitize_for_logging(value: Any) -> str:
    """
    Sanitize a value for safe logging by removing ALL newlines (including Unicode and CRLF)
    and control characters, to defend against log injection.

    Args:
        value: Any value to sanitize. If not a string, it will be converted
               to string representation first.

    Returns:
        str: Sanitized string with all control and newline characters removed.

    Examples:
        >>> sanitize_for_logging("Hello\\nWorld")
        'HelloWorld'
        >>> sanitize_for_logging("Test\\x1b[31mRed\\x1b[0m")
        'TestRed'
        >>> sanitize_for_logging(123)
        '123'
    """
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    value = _CONTROL_CHARS_RE.sub('', value)
    value = _UNICODE_NEWLINES_RE.sub('', value)
    value = _STANDARD_NEWLINES_RE.sub('', value)
    return value


def redact_url(url: str) -> str:
    """Mask API keys and tokens carried in a URL query string.

    >>> redact_url("wss://x.supabase.co/realtime/v1/websocket?apikey=secret&vsn=1.0.0")
    'wss://x.supabase.co/realtime/v1/websocket?apikey=***&vsn=1.0.0'
    """
    return _APIKEY_QUERY_RE.sub(lambda m: f"{m.group(1)}=***", sanitize_for_logging(url))
