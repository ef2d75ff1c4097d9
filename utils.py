import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

import requests
from bs4 import BeautifulSoup

from errors import MetadataLookupFailure

logger = logging.getLogger(__name__)

OEMBED_URL = "https://www.youtube.com/oembed"
HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
}


def extract_media_id(url) -> Optional[str]:
    """Extracts the video ID from a YouTube URL.

    Accepted shapes:
    - https://www.youtube.com/watch?v=VIDEO_ID
    - https://youtu.be/VIDEO_ID
    - https://www.youtube.com/embed/VIDEO_ID

    Stored entries depend on this mapping, so it must stay stable.
    """
    if not isinstance(url, str):
        return None
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname or ""
    except ValueError:
        return None
    if not parsed.scheme or not host:
        return None

    params = parse_qs(parsed.query, keep_blank_values=True)
    media_id = None
    if "youtube.com" in host and "v" in params:
        media_id = params["v"][0]
    elif host == "youtu.be":
        media_id = parsed.path.lstrip("/").split("/")[0]
    elif "youtube.com" in host and "/embed/" in parsed.path:
        media_id = parsed.path.split("/embed/", 1)[1].split("/")[0]

    return media_id or None


def lookup_title(url: str, timeout: float) -> str:
    """Fetch a video title, first from oEmbed, then from the watch page's og:title."""
    try:
        response = requests.get(
            OEMBED_URL,
            params={"url": url, "format": "json"},
            headers=HEADERS,
            timeout=timeout,
        )
        if response.status_code == 200:
            data = response.json()
            title = data.get("title") if isinstance(data, dict) else None
            if title:
                return str(title)
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"oEmbed lookup failed for {url}: {e}")

    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
        if response.status_code == 200:
            soup = BeautifulSoup(response.text, "html.parser")
            meta_title = soup.find("meta", property="og:title")
            if meta_title and meta_title.get("content"):
                return str(meta_title["content"])
            if soup.title and soup.title.string:
                return str(soup.title.string).replace(" - YouTube", "").strip()
    except requests.RequestException as e:
        raise MetadataLookupFailure(f"Error fetching title for {url}: {e}") from e

    raise MetadataLookupFailure(f"No title found for {url}")
