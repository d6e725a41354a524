"""URL extraction from Slack message text."""

import re
from itertools import islice
from typing import List

# Slack wraps links as <url> or <url|label>; anything else is a bare URL
_URL_RE = re.compile(
    r"<(https?://[^|>\s]+)(?:\|[^>]*)?>"
    r"|(?<![<|])(https?://[^\s<>]+)"
)

# Matches scanned per message, however many the text contains
MAX_URL_MATCHES = 100


def extract_urls(text: str) -> List[str]:
    """
    Extract unique URLs from message text in first-seen order.

    Args:
        text: Raw Slack message text

    Returns:
        Deduplicated list of URLs (empty if none)
    """
    if not text:
        return []

    urls: List[str] = []
    seen = set()
    for match in islice(_URL_RE.finditer(text), MAX_URL_MATCHES):
        url = match.group(1) or match.group(2)
        if url not in seen:
            seen.add(url)
            urls.append(url)
    return urls
