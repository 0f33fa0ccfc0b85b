"""
TrustLend Context Extraction

Claim contexts are flat strings of "key":"value" pairs. Consumers pull one
field out on demand; the surrounding text is never parsed as structured
data.
"""

QUOTE = ord('"')
BACKSLASH = ord('\\')


def extract_field(context: str, marker_prefix: str) -> str:
    """
    Return the value following the first occurrence of marker_prefix.

    The value runs from just past the marker to the first double quote
    that is not immediately preceded by a backslash. A missing marker or a
    missing terminator yields "" rather than an error; callers treat an
    empty result as "field missing or malformed".

    Example:
        extract_field('{"CreditScore":"750"}', '"CreditScore":"') == "750"
    """
    data = context.encode('utf-8')
    marker = marker_prefix.encode('utf-8')

    if not marker:
        return ""

    found = data.find(marker)
    if found < 0:
        return ""

    start = found + len(marker)
    for i in range(start, len(data)):
        if data[i] == QUOTE and data[i - 1] != BACKSLASH:
            return data[start:i].decode('utf-8')

    return ""


def parse_decimal(text: str) -> int:
    """
    Parse a non-negative decimal integer, skipping non-digit characters.

    "7,50" parses as 750 and "abc" as 0.
    """
    value = 0
    for ch in text:
        if '0' <= ch <= '9':
            value = value * 10 + (ord(ch) - ord('0'))
    return value
